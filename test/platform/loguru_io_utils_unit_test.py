import pytest

from src.platform.logging.loguru_io_utils import (
    MASK,
    mask_sensitive,
    should_mask_keyword,
    truncate_content,
)


pytestmark = pytest.mark.unit


class TestSensitiveMasking:
    def test_masks_card_token_in_repr(self):
        text = "BillingInfoRequest(email='b@t.com', card_token='tok_visa_4242')"

        masked = mask_sensitive(text)

        assert 'tok_visa_4242' not in masked
        assert f"card_token='{MASK}'" in masked
        assert "email='b@t.com'" in masked

    def test_masks_json_style_password(self):
        masked = mask_sensitive('{"password": "P@ssw0rd"}')

        assert masked == f'{{"password": "{MASK}"}}'

    def test_returns_original_object_when_nothing_to_mask(self):
        data = {'quantity': 2}

        assert mask_sensitive(data) is data

    def test_keyword_masking(self):
        assert should_mask_keyword('card_token', 'tok') == MASK
        assert should_mask_keyword('quantity', 2) == 2


class TestTruncate:
    def test_short_content_untouched(self):
        assert truncate_content('short') == 'short'

    def test_long_content_truncated_with_length(self):
        result = truncate_content('x' * 5000)

        assert result.endswith('(5000 chars)')
        assert len(result) < 1100
