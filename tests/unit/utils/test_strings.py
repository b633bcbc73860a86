"""
Unit Tests for string helpers
"""
import uuid

import pytest

from checkin.utils.strings import is_uuid, user_friendly_string


class TestUserFriendlyString:
    """Test enum values shown to citizens"""

    @pytest.mark.parametrize('key, expected', [
        ('VERY_WELL', 'Very well'),
        ('not_great', 'Not great'),
        (' SUPPORT_SYSTEM ', 'Support system'),
        ('NO_HELP', 'No, I do not need help'),
        ('YES', 'Yes'),
    ])
    def test_known_values(self, key: str, expected: str):
        """Test known keys are mapped"""
        assert user_friendly_string(key) == expected

    def test_unknown_value_unchanged(self):
        """Test unknown keys pass through"""
        assert user_friendly_string('OK') == 'OK'

    def test_empty(self):
        """Test empty values render as empty strings"""
        assert user_friendly_string(None) == ''
        assert user_friendly_string('') == ''


class TestIsUuid:
    """Test check in id validation"""

    def test_valid(self):
        """Test upper and lower case UUIDs"""
        value = str(uuid.uuid4())
        assert is_uuid(value) is True
        assert is_uuid(value.upper()) is True

    @pytest.mark.parametrize('value', [None, '', 'feedback', '1234', 'favicon.ico'])
    def test_invalid(self, value):
        """Test anything that is not a UUID"""
        assert is_uuid(value) is False
