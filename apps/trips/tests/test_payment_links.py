import pytest
from decimal import Decimal
from types import SimpleNamespace
from urllib.parse import urlparse, parse_qs

from apps.trips.services import UPIPaymentLinkGenerator, ValidationFailedError


PNG_SIGNATURE = b'\x89PNG\r\n\x1a\n'


class TestUPIPaymentLinkGenerator:
    """Tests for UPI deep links and QR rendering."""

    def test_uri_fields(self):
        uri = UPIPaymentLinkGenerator.generate_upi_uri(
            upi_id='goa-trip@okbank',
            payee_name='Goa Trip',
            amount=Decimal('500'),
            note='Goa Trip contribution',
        )

        parsed = urlparse(uri)
        params = parse_qs(parsed.query)
        assert parsed.scheme == 'upi'
        assert params['pa'] == ['goa-trip@okbank']
        assert params['pn'] == ['Goa Trip']
        assert params['am'] == ['500.00']
        assert params['cu'] == ['INR']
        assert params['tn'] == ['Goa Trip contribution']

    def test_spaces_encoded_as_percent20(self):
        uri = UPIPaymentLinkGenerator.generate_upi_uri(upi_id='a@b', payee_name='Goa Trip')
        assert 'pn=Goa%20Trip' in uri

    def test_amount_optional(self):
        uri = UPIPaymentLinkGenerator.generate_upi_uri(upi_id='a@b')
        assert 'am=' not in uri
        assert uri.endswith('cu=INR')

    def test_note_stripped_of_symbols(self):
        uri = UPIPaymentLinkGenerator.generate_upi_uri(upi_id='a@b', note='Trip #1 & more!')
        assert parse_qs(urlparse(uri).query)['tn'] == ['Trip 1  more']

    def test_empty_upi_id_rejected(self):
        with pytest.raises(ValidationFailedError) as exc_info:
            UPIPaymentLinkGenerator.generate_upi_uri(upi_id='  ')
        assert 'upi_id' in exc_info.value.errors

    @pytest.mark.parametrize('amount', [Decimal('0'), Decimal('-10')])
    def test_non_positive_amount_rejected(self, amount):
        with pytest.raises(ValidationFailedError) as exc_info:
            UPIPaymentLinkGenerator.generate_upi_uri(upi_id='a@b', amount=amount)
        assert 'amount' in exc_info.value.errors

    def test_qr_png(self):
        png = UPIPaymentLinkGenerator.generate_qr_png('upi://pay?pa=a@b&cu=INR')
        assert png.startswith(PNG_SIGNATURE)

    def test_generate_for_trip(self):
        trip = SimpleNamespace(name='Goa Trip', upi_id='goa@okbank')

        uri, png = UPIPaymentLinkGenerator.generate_for_trip(trip, amount=Decimal('250'))

        assert 'pa=goa%40okbank' in uri
        assert 'am=250.00' in uri
        assert png.startswith(PNG_SIGNATURE)
