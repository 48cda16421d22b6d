from typing import Optional

import attrs


@attrs.define(frozen=True)
class BillingInfo:
    email: str
    name: str
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    card_token: Optional[str] = attrs.field(default=None, repr=False)
    payment_type: Optional[str] = None
