import pytest

from .config import DEFAULT_EVERY_ORG_BASE_URL, Settings, load_settings


def test_defaults_when_environment_is_empty():
    settings = load_settings({})
    assert settings == Settings()
    assert settings.every_org_api_key == ""
    assert settings.every_org_base_url == DEFAULT_EVERY_ORG_BASE_URL
    assert settings.enrich_top_n is True


def test_reads_overrides():
    settings = load_settings({
        "EVERY_ORG_API_KEY": "  pk_live  ",
        "EVERY_ORG_BASE_URL": "https://example.test/v0.2/",
        "DIRECTORY_MAX_RETRIES": "5",
        "DIRECTORY_TIMEOUT_SECONDS": "2.5",
        "RECS_MAX_CANDIDATES": "50",
        "RECS_ENRICH_TOP_N": "false",
        "CACHE_TTL_RECOMMENDATION_SECONDS": "120",
    })
    assert settings.every_org_api_key == "pk_live"
    assert settings.every_org_base_url == "https://example.test/v0.2"
    assert settings.directory_max_retries == 5
    assert settings.directory_timeout_seconds == 2.5
    assert settings.max_candidates == 50
    assert settings.enrich_top_n is False
    assert settings.cache_ttls()["recommendation"] == 120


def test_blank_numbers_fall_back_to_defaults():
    assert load_settings({"CACHE_MAX_ENTRIES": " "}).cache_max_entries == 1000


@pytest.mark.parametrize("name, value", [
    ("CACHE_MAX_ENTRIES", "lots"),
    ("DIRECTORY_TIMEOUT_SECONDS", "fast"),
    ("RECS_ENRICH_TOP_N", "maybe"),
])
def test_invalid_values_name_the_variable(name, value):
    with pytest.raises(ValueError, match=name):
        load_settings({name: value})


def test_cache_ttls_cover_every_namespace():
    assert set(Settings().cache_ttls()) == {"search", "browse", "nonprofit", "recommendation"}
