# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Union

from paykit.exceptions import InvalidPaymentException
from paykit.type_utils import normalize_ticker


@dataclass(frozen=True)
class AddressOrEnsName:
    """Exactly one of address or ens_name is set. ENS names are resolved outside this package."""

    address: Optional[str] = None

    ens_name: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.address is None) == (self.ens_name is None):
            raise InvalidPaymentException(
                "Exactly one of address or ens_name must be provided."
            )


@dataclass(frozen=True)
class PrimaryWithSecondaries:
    """
    An ordered set of logical asset tickers: the primary one the payment is denominated in,
    then the secondaries the sender may also pay in, most preferred first.
    """

    primary: str

    secondaries: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        primary = normalize_ticker(self.primary)
        secondaries = tuple(normalize_ticker(t) for t in self.secondaries)
        all_tickers = (primary,) + secondaries
        if len(set(all_tickers)) != len(all_tickers):
            raise InvalidPaymentException(
                f"Logical asset tickers must be unique, got {list(all_tickers)}."
            )
        object.__setattr__(self, "primary", primary)
        object.__setattr__(self, "secondaries", secondaries)

    @property
    def all(self) -> Tuple[str, ...]:
        return (self.primary,) + self.secondaries

    def with_primary(self, new_primary: str) -> "PrimaryWithSecondaries":
        """
        Makes new_primary the primary. The old primary becomes the first secondary and
        new_primary is removed from the secondaries.
        """
        new_primary = normalize_ticker(new_primary)
        if new_primary == self.primary:
            return self
        return PrimaryWithSecondaries(
            primary=new_primary,
            secondaries=(self.primary,)
            + tuple(t for t in self.secondaries if t != new_primary),
        )


class PaymentModeKind(Enum):
    FIXED_AMOUNT = "FIXED_AMOUNT"
    PAY_WHAT_YOU_WANT = "PAY_WHAT_YOU_WANT"


@dataclass(frozen=True)
class PayFixedAmount:
    logical_asset_amount: int
    """Amount in the payment's primary logical asset, at logical asset precision."""

    kind: PaymentModeKind = field(default=PaymentModeKind.FIXED_AMOUNT, init=False)


@dataclass(frozen=True)
class PayWhatYouWant:
    is_dynamic_pricing_enabled: bool = False
    """If set, suggested amounts are denominated in the primary logical asset and may be converted for display."""

    can_pay_any_asset: bool = False
    """If set, the sender may pay with any supported token, not just those of the payment's logical assets."""

    suggested_logical_asset_amounts: Tuple[int, ...] = ()
    """Amounts offered to the sender, at logical asset precision."""

    kind: PaymentModeKind = field(default=PaymentModeKind.PAY_WHAT_YOU_WANT, init=False)


PaymentMode = Union[PayFixedAmount, PayWhatYouWant]


class PaymentKind(Enum):
    PROPOSED = "PROPOSED"
    """The receiver may be unresolved and no sender is attached."""

    ACCEPTED = "ACCEPTED"
    """The receiver is resolved to an address and a sender has accepted the payment."""


@dataclass(frozen=True)
class ProposedPayment:
    receiver: AddressOrEnsName

    logical_asset_tickers: PrimaryWithSecondaries

    payment_mode: PaymentMode

    sender_address: Optional[str] = None
    """Set when the receiver has requested a specific sender."""

    kind: PaymentKind = field(default=PaymentKind.PROPOSED, init=False)

    @property
    def fixed_amount(self) -> Optional[int]:
        return _fixed_amount(self.payment_mode)


@dataclass(frozen=True)
class Payment:
    receiver_address: str

    sender_address: str

    logical_asset_tickers: PrimaryWithSecondaries

    payment_mode: PaymentMode

    kind: PaymentKind = field(default=PaymentKind.ACCEPTED, init=False)

    @property
    def fixed_amount(self) -> Optional[int]:
        return _fixed_amount(self.payment_mode)


def _fixed_amount(payment_mode: PaymentMode) -> Optional[int]:
    if payment_mode.kind == PaymentModeKind.FIXED_AMOUNT:
        return payment_mode.logical_asset_amount  # type: ignore[union-attr]
    return None


def accept_proposed_payment(
    sender_address: str, proposed_payment: ProposedPayment
) -> Payment:
    """
    Binds a proposed payment to a sender.

    Raises:
        InvalidPaymentException: if the receiver has not been resolved to an address.
    """
    receiver_address = proposed_payment.receiver.address
    if receiver_address is None:
        raise InvalidPaymentException(
            "Cannot accept a proposed payment whose receiver is not resolved to an address."
        )
    return Payment(
        receiver_address=receiver_address,
        sender_address=sender_address,
        logical_asset_tickers=proposed_payment.logical_asset_tickers,
        payment_mode=proposed_payment.payment_mode,
    )
