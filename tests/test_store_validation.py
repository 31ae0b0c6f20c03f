import pytest

from squadgrid.ledger import ValidationError


@pytest.mark.parametrize("amount", ["NaN", "inf", "abc", "", "0", "-5"])
def test_link_amount_rejected(store, amount):
    with pytest.raises(ValidationError):
        store.create_payment_link(amount=amount, currency="USDC", merchant_wallet="w")
    assert store.get_all_payment_links() == []


def test_link_currency_rejected(store):
    with pytest.raises(ValidationError):
        store.create_payment_link(amount="1", currency="DAI", merchant_wallet="w")


def test_transaction_nan_never_reaches_balances(store):
    acct = store.create_virtual_account("A", "business")
    with pytest.raises(ValidationError):
        store.create_transaction(
            transaction_type="deposit", amount="NaN", currency="USDC",
            status="completed", payment_method="wallet", account_id=acct.account_id,
        )
    assert store.transactions == []
    assert acct.total_balance == "0.00"


@pytest.mark.parametrize("field,value", [
    ("transaction_type", "refund"),
    ("status", "done"),
    ("payment_method", "cash"),
    ("currency", "EUR"),
])
def test_transaction_enums_rejected(store, field, value):
    kwargs = dict(transaction_type="payment", amount="1", currency="USDC", status="completed", payment_method="wallet")
    kwargs[field] = value
    with pytest.raises(ValidationError):
        store.create_transaction(**kwargs)


def test_validation_error_is_value_error(store):
    with pytest.raises(ValueError):
        store.create_virtual_account("A", "checking")


@pytest.mark.parametrize("amount", ["0.001", "0.004", "-0.001"])
def test_amount_rounding_to_zero_rejected(store, amount):
    with pytest.raises(ValidationError):
        store.create_payment_link(amount=amount, currency="USDC", merchant_wallet="w")
    with pytest.raises(ValidationError):
        store.create_transaction(
            transaction_type="payment", amount=amount, currency="USDC", status="completed", payment_method="card",
        )
    assert store.get_all_payment_links() == [] and store.transactions == []


def test_sub_cent_amount_rounds_half_up(store):
    link = store.create_payment_link(amount="0.005", currency="USDC", merchant_wallet="w")
    assert link.amount == "0.01"


@pytest.mark.parametrize("amount", ["1e30", "1e16", "-1e30"])
def test_out_of_range_amount_rejected(store, amount):
    with pytest.raises(ValidationError):
        store.create_payment_link(amount=amount, currency="USDC", merchant_wallet="w")
    acct = store.create_virtual_account("A", "business")
    with pytest.raises(ValidationError):
        store.update_virtual_account(acct.account_id, balances={"USDC": amount})
    assert acct.total_balance == "0.00"
