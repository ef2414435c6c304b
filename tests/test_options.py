from types import SimpleNamespace

import pytest

from metareport.config.options import EmailOptions, MetaApiOptions
from metareport.core.exceptions import ConfigurationError

def test_recipients_from_comma_separated_list():
    options = EmailOptions(to_addresses="user1@test.com,user2@test.com,user3@test.com")
    assert options.get_recipients() == ["user1@test.com", "user2@test.com", "user3@test.com"]

def test_recipients_are_trimmed():
    options = EmailOptions(to_addresses=" user1@test.com , user2@test.com ")
    assert options.get_recipients() == ["user1@test.com", "user2@test.com"]

def test_recipients_empty():
    assert EmailOptions(to_addresses="").get_recipients() == []

def test_recipients_ignore_empty_entries():
    options = EmailOptions(to_addresses="user1@test.com,,user2@test.com,,")
    assert options.get_recipients() == ["user1@test.com", "user2@test.com"]

def test_legacy_address_only():
    assert EmailOptions(to_address="legacy@test.com").get_recipients() == ["legacy@test.com"]

def test_legacy_address_is_appended():
    options = EmailOptions(to_addresses="user1@test.com,user2@test.com", to_address="legacy@test.com")
    assert options.get_recipients() == ["user1@test.com", "user2@test.com", "legacy@test.com"]

def test_duplicates_removed_case_insensitively():
    options = EmailOptions(to_addresses="User1@Test.com,user2@test.com,USER2@test.com", to_address="user1@test.com")
    assert options.get_recipients() == ["User1@Test.com", "user2@test.com"]

def test_metaapi_options_from_settings():
    settings = SimpleNamespace(
        METAAPI_TOKEN="token",
        METAAPI_ACCOUNT_ID="acc-1",
        METAAPI_BASE_URL="https://example.test/",
        METAAPI_TIMEOUT_SECONDS=15.0,
        METAAPI_CONNECT_TIMEOUT_SECONDS=3.0,
        METAAPI_MAX_RETRIES=2,
        METAAPI_RETRY_BASE_DELAY=1.0,
    )
    options = MetaApiOptions.from_settings(settings)
    assert options.base_url == "https://example.test"
    assert options.max_retries == 2
    assert options.timeout_seconds == 15.0
    assert options.connect_timeout_seconds == 3.0

def test_missing_settings_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        MetaApiOptions.from_settings(None)
    with pytest.raises(ConfigurationError):
        EmailOptions.from_settings(None)
