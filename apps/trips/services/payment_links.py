"""
UPI payment links and QR codes for trips.

Contributors scan the code with any UPI app to pay the trip owner; they
still submit a screenshot afterwards. Nothing here verifies payments.
"""

from decimal import Decimal
from io import BytesIO
from urllib.parse import urlencode, quote

from .exceptions import ValidationFailedError


class UPIPaymentLinkGenerator:
    """
    Generate UPI deep links and QR codes for a trip's UPI ID.

    Format::

        upi://pay?pa=<upi id>&pn=<payee name>&am=<amount>&cu=INR&tn=<note>

    Fields:
        - pa: Payee address (the trip's UPI ID)
        - pn: Payee name (optional)
        - am: Amount with two decimals (optional, payer enters it otherwise)
        - cu: Currency, always INR
        - tn: Transaction note (optional)

    Example:
        Build the link and the PNG for a trip::

            uri = UPIPaymentLinkGenerator.generate_upi_uri(
                upi_id='goa-trip@okbank',
                payee_name='Goa Trip',
                amount=Decimal('500'),
            )
            # uri = "upi://pay?pa=goa-trip%40okbank&pn=Goa%20Trip&am=500.00&cu=INR"

            png_bytes = UPIPaymentLinkGenerator.generate_qr_png(uri)

    Note:
        Requires the ``qrcode`` library with PIL support.
    """

    @staticmethod
    def generate_upi_uri(upi_id, payee_name='', amount=None, note=''):
        """
        Build a ``upi://pay`` URI.

        Args:
            upi_id (str): Payee UPI ID, e.g. ``name@bank``.
            payee_name (str, optional): Name shown in the payer's app.
            amount (Decimal, optional): Prefilled amount, must be positive.
            note (str, optional): Transaction note. Only letters, digits,
                spaces and ``- . ,`` are kept.

        Returns:
            str: The UPI URI.

        Raises:
            ValidationFailedError: If ``upi_id`` is empty or ``amount`` is not positive.
        """
        upi_id = (upi_id or '').strip()
        if not upi_id:
            raise ValidationFailedError({'upi_id': ['This trip has no UPI ID.']})

        params = {'pa': upi_id}
        if payee_name:
            params['pn'] = payee_name

        if amount is not None:
            amount = Decimal(amount)
            if amount <= 0:
                raise ValidationFailedError({'amount': ['Amount must be positive.']})
            params['am'] = f'{amount:.2f}'

        params['cu'] = 'INR'

        if note:
            clean_note = ''.join(c for c in note if c.isalnum() or c in ' -.,')
            if clean_note:
                params['tn'] = clean_note

        return 'upi://pay?' + urlencode(params, quote_via=quote)

    @staticmethod
    def generate_qr_png(uri):
        """
        Render ``uri`` as a QR code and return the PNG bytes.

        The code uses error correction level M (15% recovery).
        """
        import qrcode

        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=4,
        )
        qr.add_data(uri)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffer = BytesIO()
        img.save(buffer, format='PNG')
        return buffer.getvalue()

    @staticmethod
    def generate_for_trip(trip, amount=None):
        """
        Build the URI and QR PNG for a trip.

        Returns:
            tuple: A tuple containing:
                - str: The UPI URI.
                - bytes: The QR code as PNG.
        """
        uri = UPIPaymentLinkGenerator.generate_upi_uri(
            upi_id=trip.upi_id,
            payee_name=trip.name,
            amount=amount,
            note=f'{trip.name} contribution',
        )
        return uri, UPIPaymentLinkGenerator.generate_qr_png(uri)
