import json

from reviews_connect.etl import transform
from reviews_connect.models import ConnectedProfileRecord, Place, Review


def _provider_result(**overrides):
    result = {
        "page_id": "ChIJ1234567890abcdefgh",
        "name": "Acme Bakery",
        "avatar_url": "https://img.test/acme.png",
        "address": "1 Main St",
        "website": "https://acme.test",
        "type": "bakery, cafe",
        "review_url": "https://g.page/acme/review",
        "write_review_url": "https://g.page/acme/write",
        "reviews": {
            "count": "120",
            "score": 4.6,
            "details": {"count-by-rating": {"5": 90, "4": 20, "1": 10}, "count-by-rating-last": [1, 0, 0, 2, 7]},
            "list": [
                {"user": "Ann", "rating": 5, "time": 1700000000, "text": "Great"},
                {"user": "Bob", "rating": "4", "time": 1690000000, "reply": "Thanks"},
                {"user": "Broken", "rating": 9},
            ],
        },
    }
    result.update(overrides)
    return result


def test_to_place_normalizes_provider_result():
    place = transform.to_place(_provider_result(), max_reviews=50)

    assert place.page_id == "ChIJ1234567890abcdefgh"
    assert place.description == "1 Main St"
    assert place.categories == "bakery, cafe"
    assert place.rating_count == 120
    assert place.rating_score == 4.6
    assert place.rating_histogram == {5: 90, 4: 20, 1: 10}
    assert place.rating_histogram_previous == {1: 1, 2: 0, 3: 0, 4: 2, 5: 7}
    assert [review.author for review in place.reviews] == ["Ann", "Bob"]
    assert place.reviews[1].reply == "Thanks"


def test_to_place_falls_back_to_website_and_clamps_score():
    result = _provider_result(address=None)
    result["reviews"]["score"] = 7
    place = transform.to_place(result, max_reviews=1)

    assert place.description == "https://acme.test"
    assert place.rating_score == 5.0
    assert len(place.reviews) == 1


def test_to_place_requires_id_and_name():
    assert transform.to_place({"name": "Acme"}, max_reviews=10) is None
    assert transform.to_place({"page_id": "ChIJx"}, max_reviews=10) is None


def test_to_candidates_skips_incomplete_entries():
    candidates = transform.to_candidates(
        [
            {"url": "https://maps.google.com/?cid=1", "name": "Pizza One", "address": "A St", "type": "pizza"},
            {"name": "No Url"},
            "garbage",
        ]
    )
    assert len(candidates) == 1
    assert candidates[0].name == "Pizza One"
    assert candidates[0].categories == "pizza"


def test_place_from_autocomplete_uses_photo_and_types():
    details = {
        "place_id": "ChIJ1234567890abcdefgh",
        "name": "Acme",
        "icon": "https://icon.test/i.png",
        "formatted_address": "1 Main St",
        "types": ["bakery", "establishment"],
        "user_ratings_total": 42,
    }
    place = transform.place_from_autocomplete(details, photo_url="https://photo.test/p.jpg")

    assert place.avatar_url == "https://photo.test/p.jpg"
    assert place.categories == "bakery"
    assert place.rating_count == 42
    assert transform.place_from_autocomplete(details).avatar_url == "https://icon.test/i.png"


def test_connect_form_and_place_data_agree():
    place = transform.to_place(_provider_result(), max_reviews=50)
    form = transform.to_connect_form(place, "nonce-1")

    assert form["_wpnonce"] == "nonce-1"
    assert form["source[page_id]"] == form["source[id]"] == place.page_id
    assert json.loads(form["stat[details]"])["count-by-rating"] == {"1": 10, "4": 20, "5": 90}

    data = transform.to_place_data(form)
    assert data["id"] == place.page_id
    assert data["name"] == "Acme Bakery"
    assert data["rating_number"] == 120
    assert data["rating_score"] == 4.6
    assert data["rating_numbers"] == {"1": 10, "4": 20, "5": 90}
    assert data["reviews"][0]["user"] == "Ann"


def test_to_place_data_sanitizes_fields():
    data = transform.to_place_data(
        {
            "source[name]": "<b>Acme</b>  <script>x</script><style>p {}</style>",
            "source[page_id]": "ChIJ1",
            "avatar_url": "javascript:alert(1)",
            "review_url": "https://g.page/acme/review",
            "stat[count]": "abc",
            "stat[details]": "{not json",
            "reviews": "",
        }
    )
    assert data["name"] == "Acme"
    assert data["avatar_url"] == ""
    assert data["review_url"] == "https://g.page/acme/review"
    assert data["rating_number"] == 0
    assert data["rating_numbers"] == {}
    assert data["reviews"] == []


def test_to_message_shape():
    place = Place(page_id="ChIJ1", name="Acme", rating_histogram={5: 3}, reviews=(Review("Ann", 5, 1),))
    message = transform.to_message(ConnectedProfileRecord(place=place, request_id="req_1", connected_at=99))

    assert message["id"] == "ChIJ1"
    assert message["request_id"] == "req_1"
    assert message["timestamp"] == 99
    assert message["rating_numbers"] == {"5": 3}
    assert message["reviews"] == [{"user": "Ann", "rating": 5, "time": 1, "text": None, "reply": None}]


def test_dashboard_stats():
    reviews = [{"rating": 5}, {"rating": 4}, {"rating": 2}, {}]
    assert transform.average_rating(reviews) == 11 / 4
    assert transform.count_positive_reviews(reviews) == 2
    assert transform.average_rating([]) == 0.0


def test_parse_review_accepts_decimal_strings():
    review = transform.parse_review({"user": "Ann", "rating": "4.0", "time": "1700000000.0"})
    assert review == Review("Ann", 4, 1700000000)

    assert transform.parse_review({"user": "Bob", "rating": "5", "time": "-5"}).timestamp == 0
    assert transform.parse_review({"user": "Eve", "rating": "4.5 stars"}) is None
    assert transform.parse_review({"user": "Eve", "rating": "40"}) is None
