import pytest

from moviedeck.models.tmdb import (
    BACKDROP_BASE_URL,
    GENRE_MAP,
    HERO_FALLBACK_URL,
    IMAGE_BASE_URL,
    NO_DESCRIPTION,
    NormalizedMovie,
    RawMovieDetails,
    format_rating,
    merge_details,
    parse_year,
    resolve_genres,
    summary_from_details,
    transform_movie,
)

from conftest import raw_movie


def test_transform_maps_every_field():
    movie = transform_movie(raw_movie(42, vote_average=8.0))

    assert movie.id == 42
    assert movie.title == "Movie 42"
    assert movie.genres == ["Action"]
    assert movie.rating == "0.8"
    assert movie.year == 2020
    assert movie.description == "An overview."
    assert movie.poster == f"{IMAGE_BASE_URL}/poster42.jpg"
    assert movie.backdrop == f"{BACKDROP_BASE_URL}/backdrop42.jpg"
    assert movie.release_date == "2020-05-01"
    assert movie.popularity == 10.5
    assert movie.vote_count == 100


def test_transform_with_only_an_id():
    movie = transform_movie({"id": 7})

    assert movie.id == 7
    assert movie.title == ""
    assert movie.genres == []
    assert movie.rating == "0.0"
    assert movie.year is None
    assert movie.description == NO_DESCRIPTION
    assert movie.poster is None
    assert movie.backdrop is None
    assert movie.release_date is None


def test_transform_handles_null_optional_fields():
    movie = transform_movie(raw_movie(
        1,
        genre_ids=None,
        vote_average=None,
        release_date=None,
        overview="",
        poster_path=None,
        backdrop_path="",
    ))

    assert movie.genres == []
    assert movie.rating == "0.0"
    assert movie.description == NO_DESCRIPTION
    assert movie.poster is None
    assert movie.backdrop is None


@pytest.mark.parametrize("vote_average", [0, 0.5, 3.3, 6.25, 7.9, 9.99, 10])
def test_rating_is_one_decimal_numeral(vote_average):
    rating = format_rating(vote_average)
    whole, _, fraction = rating.partition(".")

    assert whole.isdigit()
    assert len(fraction) == 1 and fraction.isdigit()
    assert 0.0 <= float(rating) <= 10.0


def test_rating_divides_vote_average_by_ten():
    assert format_rating(10) == "1.0"
    assert format_rating(7.0) == "0.7"
    assert format_rating(None) == "0.0"


def test_rating_rounds_ties_up():
    assert format_rating(2.5) == "0.3"
    assert format_rating(7.5) == "0.8"
    # 1.5 / 10 is just below 0.15 in binary
    assert format_rating(1.5) == "0.1"


@pytest.mark.parametrize("release_date, year", [
    ("2020", 2020),
    ("2020-05", 2020),
    ("1999-12-31", 1999),
    ("2021-03-04T10:00:00Z", 2021),
])
def test_partial_release_dates_keep_their_year(release_date, year):
    assert parse_year(release_date) == year


def test_every_mapped_genre_resolves_to_its_name():
    assert resolve_genres(list(GENRE_MAP)) == list(GENRE_MAP.values())


def test_unknown_genre_ids_resolve_to_unknown():
    assert resolve_genres([28, 99999, 35]) == ["Action", "Unknown", "Comedy"]


@pytest.mark.parametrize("release_date", [None, "", "not-a-date", "2020-13-45"])
def test_unparseable_release_date_has_no_year(release_date):
    assert parse_year(release_date) is None

    movie = transform_movie(raw_movie(1, release_date=release_date))
    assert movie.year is None
    assert movie.release_date == release_date


def test_hero_image_prefers_backdrop_then_poster():
    movie = transform_movie(raw_movie(1))
    assert movie.hero_image == movie.backdrop

    no_backdrop = transform_movie(raw_movie(1, backdrop_path=None))
    assert no_backdrop.hero_image == no_backdrop.poster

    bare = NormalizedMovie(id=1, title="Bare")
    assert bare.hero_image == HERO_FALLBACK_URL


def test_normalized_movie_is_immutable():
    movie = transform_movie(raw_movie(1))
    with pytest.raises(Exception):
        movie.title = "Changed"


def test_merge_details_without_details_keeps_summary():
    movie = transform_movie(raw_movie(5))
    details = merge_details(movie, None)

    assert details.detailed is False
    assert details.title == movie.title
    assert details.genres == movie.genres
    assert details.runtime is None
    assert details.tagline == ""


def test_merge_details_uses_detail_genres_and_fields():
    movie = transform_movie(raw_movie(5))
    raw = RawMovieDetails(
        id=5,
        runtime=0,
        budget=1000,
        revenue=5000,
        genres=[{"id": 18, "name": "Drama"}, {"id": 53, "name": "Thriller"}],
        production_companies=[{"id": 1, "name": "Studio"}],
        tagline="A tagline",
        homepage="",
    )
    details = merge_details(movie, raw)

    assert details.detailed is True
    assert details.genres == ["Drama", "Thriller"]
    assert details.runtime is None
    assert details.budget == 1000
    assert details.revenue == 5000
    assert details.production_companies == ["Studio"]
    assert details.tagline == "A tagline"
    assert details.homepage is None
    assert details.rating == movie.rating


def test_merge_details_keeps_summary_genres_when_details_have_none():
    movie = transform_movie(raw_movie(5))
    details = merge_details(movie, RawMovieDetails(id=5, runtime=120))

    assert details.genres == ["Action"]
    assert details.runtime == 120


def test_summary_from_details_reads_nested_genres():
    movie = summary_from_details({
        "id": 9,
        "title": "Detail",
        "genres": [{"id": 35, "name": "Comedy"}, {"id": 1, "name": "Odd"}],
        "vote_average": 6.0,
        "release_date": "1999-01-01",
    })

    assert movie.genres == ["Comedy", "Unknown"]
    assert movie.rating == "0.6"
    assert movie.year == 1999
