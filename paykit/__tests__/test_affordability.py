from typing import Dict

from paykit.affordability import (
    amount_needed_to_afford,
    can_afford,
    logical_amount_needed_to_afford,
    partition_strategies_by_affordability,
    sort_strategies_by_logical_amount_needed_to_afford,
)
from paykit.exchange_rates import make_exchange_rates
from paykit.protocol.address_context import AddressContext
from paykit.protocol.payment import PayFixedAmount, Payment, PrimaryWithSecondaries
from paykit.protocol.strategy import Strategy
from paykit.protocol.token_balance import TokenBalance
from paykit.protocol.token_transfer import TokenTransfer
from paykit.tokens import Token, get_all_tokens, get_token_key

SENDER = "0x00000000000000000000000000000000000000aa"
RECEIVER = "0x00000000000000000000000000000000000000bb"
ONE = 10**18


def _token(ticker: str, chain_id: int, bridged: bool = False) -> Token:
    return next(
        t
        for t in get_all_tokens()
        if t.ticker == ticker and t.chain_id == chain_id and t.is_bridged == bridged
    )


def _strategy(token: Token, amount: int) -> Strategy:
    payment = Payment(
        receiver_address=RECEIVER,
        sender_address=SENDER,
        logical_asset_tickers=PrimaryWithSecondaries("USD"),
        payment_mode=PayFixedAmount(logical_asset_amount=ONE),
    )
    return Strategy(
        payment=payment,
        token_transfer=TokenTransfer(
            token=token,
            amount=amount,
            receiver_address=RECEIVER,
            sender_address=SENDER,
        ),
    )


def _address_context(balances: Dict[Token, int]) -> AddressContext:
    return AddressContext(
        address=SENDER,
        token_balances={
            get_token_key(token): TokenBalance(
                address=SENDER,
                token_key=get_token_key(token),
                balance=balance,
                balance_as_of_millis=0,
            )
            for token, balance in balances.items()
        },
    )


def test_can_afford_boundaries() -> None:
    usdc = _token("USDC", 10)
    key = get_token_key(usdc)
    context = _address_context({usdc: 5_000_000})

    assert can_afford(context, key, 5_000_000)
    assert can_afford(context, key, 4_999_999)
    assert not can_afford(context, key, 5_000_001)
    assert not can_afford(context, get_token_key(_token("DAI", 10)), 1)
    assert can_afford(_address_context({}), key, 0) is False


def test_amount_needed_to_afford() -> None:
    usdc = _token("USDC", 10)
    key = get_token_key(usdc)
    context = _address_context({usdc: 3})

    assert amount_needed_to_afford(context, key, 5) == 2
    assert amount_needed_to_afford(context, key, 1) == -2
    assert amount_needed_to_afford(_address_context({}), key, 5) == 5


def test_partition_keeps_relative_order() -> None:
    usdc, dai, usdt, eth = (
        _token("USDC", 10),
        _token("DAI", 10),
        _token("USDT", 10),
        _token("ETH", 10),
    )
    strategies = [
        _strategy(usdc, 10),
        _strategy(dai, 10),
        _strategy(usdt, 10),
        _strategy(eth, 10),
    ]
    context = _address_context({dai: 10, eth: 100, usdc: 9})

    affordable, unaffordable = partition_strategies_by_affordability(context, strategies)

    assert [s.token for s in affordable] == [dai, eth]
    assert [s.token for s in unaffordable] == [usdc, usdt]


def test_logical_amount_needed_to_afford() -> None:
    rates = make_exchange_rates({"ETH": {"USD": 3000}})
    eth = _token("ETH", 1)
    context = _address_context({eth: 10**15})

    # 0.002 ETH needed, 0.001 held: 0.001 ETH short, worth 3 USD
    assert logical_amount_needed_to_afford(rates, context, _strategy(eth, 2 * 10**15)) == 3 * ONE
    assert logical_amount_needed_to_afford(None, context, _strategy(eth, 2 * 10**15)) is None
    # USDC needs no rate to be valued in USD
    assert (
        logical_amount_needed_to_afford(None, context, _strategy(_token("USDC", 10), 1_500_000))
        == 3 * ONE // 2
    )
    assert logical_amount_needed_to_afford(rates, context, _strategy(_token("MATIC", 137), 1)) is None


def test_sort_by_shortfall_puts_unknown_shortfalls_last() -> None:
    rates = make_exchange_rates({"ETH": {"USD": 3000}})
    matic = _strategy(_token("MATIC", 137), ONE)
    usdc = _strategy(_token("USDC", 10), 5_000_000)
    eurc = _strategy(_token("EURC", 8453), 1_000_000)
    eth = _strategy(_token("ETH", 1), 10**15)
    dai = _strategy(_token("DAI", 10), ONE)
    strategies = [matic, usdc, eurc, eth, dai]

    sort_strategies_by_logical_amount_needed_to_afford(
        rates, _address_context({}), strategies
    )

    assert strategies == [dai, eth, usdc, matic, eurc]
