"""
Unit Tests for Settings
Tests for: list and feature flag parsing, derived settings
"""
import pytest

from checkin.core.config import Settings, parse_feature_flags, parse_list


class TestParseList:
    """Test list setting parsing"""

    def test_comma_separated(self):
        """Test that comma separated values are split and stripped"""
        assert parse_list('/health, /ping,/assets') == ['/health', '/ping', '/assets']

    def test_json_list(self):
        """Test that a JSON list is decoded"""
        assert parse_list('["/a", "/b"]') == ['/a', '/b']

    def test_empty_items_dropped(self):
        """Test that empty entries are ignored"""
        assert parse_list('/a,,/b,') == ['/a', '/b']

    def test_non_string_returns_empty(self):
        """Test that unsupported types give an empty list"""
        assert parse_list(None) == []


class TestParseFeatureFlags:
    """Test feature flag default parsing"""

    def test_on_and_off(self):
        """Test that on/off states become booleans"""
        assert parse_feature_flags('debugMode:on,newVideo:off') == {
            'debugMode': True,
            'newVideo': False,
        }

    def test_true_and_one_are_on(self):
        """Test alternative truthy spellings"""
        flags = parse_feature_flags('a:true, b:1, c:nope')
        assert flags == {'a': True, 'b': True, 'c': False}

    def test_entries_without_state_ignored(self):
        """Test that malformed entries are skipped"""
        assert parse_feature_flags('broken,ok:on') == {'ok': True}

    def test_empty(self):
        """Test empty string gives no flags"""
        assert parse_feature_flags('') == {}


class TestSettings:
    """Test derived settings"""

    @pytest.fixture
    def settings(self) -> Settings:
        return Settings(
            SECRET_KEY='test',
            ENVIRONMENT='production',
            SESSION_TIMEOUT_MINUTES=20,
            SESSION_WARNING_SECONDS=120,
        )

    def test_session_max_age_covers_warning(self, settings: Settings):
        """Test that the cookie outlives the inactivity timeout plus the countdown"""
        assert settings.session_max_age == 20 * 60 + 120

    def test_production_is_not_dev_mode(self, settings: Settings):
        """Test production detection"""
        assert settings.is_production is True
        assert settings.is_dev_mode() is False

    def test_debug_enables_dev_mode(self):
        """Test that DEBUG switches on dev mode outside development"""
        settings = Settings(SECRET_KEY='test', ENVIRONMENT='staging', DEBUG=True)
        assert settings.is_dev_mode() is True

    def test_video_config(self, settings: Settings):
        """Test the timings handed to the recorder script"""
        assert settings.get_video_config() == {
            'countdown': 3000,
            'screenshot': 2000,
            'duration': 5000,
            'loadingDelay': 3000,
        }

    def test_session_timeout_config(self, settings: Settings):
        """Test the timings handed to the timeout modal"""
        assert settings.get_session_timeout_config() == {
            'timeoutMinutes': 20,
            'warningSeconds': 120,
        }

    def test_geo_bypass_paths(self, settings: Settings):
        """Test default bypass paths"""
        assert '/health' in settings.GEO_BYPASS_PATHS
        assert '/assets' in settings.GEO_BYPASS_PATHS

    def test_feature_flag_defaults(self, settings: Settings):
        """Test that debug mode is off by default"""
        assert settings.FEATURE_FLAG_DEFAULTS == {'debugMode': False}
