import pytest
from pydantic import ValidationError

from app.models import (
    DiscoveryParams,
    MediaItem,
    RecommendationRequest,
    Recommendations,
    UserPreferences,
)


def test_preferences_normalise_region_genres_and_recency():
    preferences = UserPreferences.model_validate(
        {"region": "de", "genreKeys": ["Drama", " comedy ", "drama"], "recency": "later"}
    )

    assert preferences.region == "DE"
    assert preferences.genre_keys == ("drama", "comedy")
    assert preferences.recency == "any"
    assert preferences.surprise_me is False


def test_preferences_accept_comma_separated_genres():
    preferences = UserPreferences.model_validate({"genres": "horror,thriller"})

    assert preferences.genre_keys == ("horror", "thriller")


def test_preferences_reject_bad_region():
    with pytest.raises(ValidationError):
        UserPreferences.model_validate({"region": "USA"})


def test_preferences_are_immutable():
    preferences = UserPreferences()

    with pytest.raises(ValidationError):
        preferences.region = "GB"


def test_recommendation_request_defaults_and_override():
    request = RecommendationRequest.model_validate(
        {"region": "fr", "genres": [], "platform": "Netflix", "contentType": "series"}
    )

    assert request.platform == "netflix"
    assert request.content_type == "series"
    assert request.to_preferences() == UserPreferences(region="FR")


def test_recommendation_request_rejects_unknown_content_type():
    with pytest.raises(ValidationError):
        RecommendationRequest.model_validate({"contentType": "podcast"})


def test_discovery_params_serialise_camel_case():
    from datetime import date

    params = DiscoveryParams(
        pool="series",
        pool_genre_ids=(18,),
        date_from=date(2024, 1, 1),
        date_to=date(2024, 2, 1),
        region="US",
    )

    payload = params.to_payload()
    assert payload["poolGenreIds"] == [18]
    assert payload["dateFrom"] == "2024-01-01"
    assert payload["sortOrder"] == "popularity.desc"


def test_recommendations_payload_shape():
    item = MediaItem(id="tmdb-series-1", source_id=1, pool_type="series", season_count=2)
    result = Recommendations(
        content_type="all",
        results=(item,),
        series_count=1,
        includes_rental_content=True,
        surprise_me=True,
        preferences=UserPreferences(),
    )

    payload = result.to_payload()
    assert payload["contentType"] == "all"
    assert payload["movieCount"] == 0
    assert payload["seriesCount"] == 1
    assert payload["includesRentalContent"] is True
    assert payload["results"][0]["seasonCount"] == 2
    assert payload["preferences"] == {
        "region": "US",
        "genreKeys": [],
        "recency": "any",
    }
