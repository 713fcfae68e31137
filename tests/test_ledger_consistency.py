"""
Ledger consistency tests — driving TransactionService directly.

After any sequence of creates, updates and deletes:

    account.balance = initial + income - expenses - investments
    investment.current_value = initial + investments funding it
    card.current_balance = expenses charged to it

and a failure part-way through a mutation leaves every balance exactly as
it was before the call.
"""

import asyncio
import uuid

import pytest

from app.exceptions import (
    AccountNotFoundError,
    CategoryNotFoundError,
    CreditCardNotFoundError,
    InvestmentNotFoundError,
    TransactionNotFoundError,
    UnitOfWorkTimeoutError,
)
from app.repositories import (
    SQLAlchemyAccountRepository,
    SQLAlchemyCategoryRepository,
    SQLAlchemyCreditCardRepository,
    SQLAlchemyInvestmentRepository,
    SQLAlchemyTransactionRepository,
)
from app.schemas.transaction import (
    TransactionCreateRequest,
    TransactionFilters,
    TransactionUpdateRequest,
)
from app.services import account_service
from app.services.transaction_service import TransactionService
from app.unit_of_work import SessionUnitRunner


async def _current(db_session, row):
    # A rolled-back unit expires every instance in the session
    await db_session.refresh(row)
    return row


def _create(**fields) -> TransactionCreateRequest:
    return TransactionCreateRequest(**fields)


def _update(**fields) -> TransactionUpdateRequest:
    return TransactionUpdateRequest(**fields)


class TestAccountScenarios:
    """Balance walk-throughs on a single account."""

    async def test_expense_update_delete_walkthrough(self, service, db_session, owner, make_account):
        """1000 -> expense 200 -> amount 300 -> delete: 800, 700, 1000."""
        account = await make_account(100_000)

        txn = await service.create_transaction(
            owner.id, _create(type="expense", amount_cents=20_000, account_id=account.id)
        )
        assert (await _current(db_session, account)).balance_cents == 80_000

        await service.update_transaction(txn.id, owner.id, _update(amount_cents=30_000))
        assert (await _current(db_session, account)).balance_cents == 70_000

        result = await service.delete_transaction(txn.id, owner.id)
        assert result == {"success": True}
        assert (await _current(db_session, account)).balance_cents == 100_000

    async def test_expense_to_income(self, service, db_session, owner, make_account):
        account = await make_account(100_000)
        txn = await service.create_transaction(
            owner.id, _create(type="expense", amount_cents=20_000, account_id=account.id)
        )

        await service.update_transaction(txn.id, owner.id, _update(type="income"))
        assert (await _current(db_session, account)).balance_cents == 120_000

    async def test_move_to_other_account(self, service, db_session, owner, make_account):
        first = await make_account(100_000, name="First")
        second = await make_account(50_000, name="Second")
        txn = await service.create_transaction(
            owner.id, _create(type="income", amount_cents=10_000, account_id=first.id)
        )

        updated = await service.update_transaction(txn.id, owner.id, _update(account_id=second.id))
        assert updated.account_id == second.id
        assert (await _current(db_session, first)).balance_cents == 100_000
        assert (await _current(db_session, second)).balance_cents == 60_000

    async def test_move_and_change_amount(self, service, db_session, owner, make_account):
        first = await make_account(100_000, name="First")
        second = await make_account(0, name="Second")
        txn = await service.create_transaction(
            owner.id, _create(type="expense", amount_cents=10_000, account_id=first.id)
        )

        await service.update_transaction(
            txn.id, owner.id, _update(account_id=second.id, amount_cents=4_000)
        )
        assert (await _current(db_session, first)).balance_cents == 100_000
        assert (await _current(db_session, second)).balance_cents == -4_000

    async def test_non_financial_update_writes_no_balance(self, service, db_session, owner, make_account):
        account = await make_account(100_000)
        txn = await service.create_transaction(
            owner.id, _create(type="expense", amount_cents=20_000, account_id=account.id)
        )

        updated = await service.update_transaction(
            txn.id, owner.id, _update(description="Groceries")
        )
        assert updated.description == "Groceries"
        assert (await _current(db_session, account)).balance_cents == 80_000

    async def test_delete_then_recreate_is_identity(self, service, db_session, owner, make_account):
        account = await make_account(42_000)
        request = _create(type="expense", amount_cents=1_234, account_id=account.id)

        txn = await service.create_transaction(owner.id, request)
        await service.delete_transaction(txn.id, owner.id)
        assert (await _current(db_session, account)).balance_cents == 42_000

        await service.create_transaction(owner.id, request)
        assert (await _current(db_session, account)).balance_cents == 40_766

    async def test_stored_balance_matches_computed(self, service, db_session, owner, make_account):
        account = await make_account(10_000)
        created = []
        for txn_type, amount in [
            ("income", 5_000),
            ("expense", 1_250),
            ("investment", 2_000),
            ("expense", 99),
        ]:
            created.append(
                await service.create_transaction(
                    owner.id, _create(type=txn_type, amount_cents=amount, account_id=account.id)
                )
            )
        await service.update_transaction(created[1].id, owner.id, _update(amount_cents=750))
        await service.delete_transaction(created[3].id, owner.id)

        balance = await account_service.get_balance(db_session, account.id, owner.id)
        assert balance["balance_cents"] == 10_000 + 5_000 - 750 - 2_000
        assert balance["match"] is True


class TestInvestmentScenarios:
    """Investment transactions move the investment and debit the account."""

    async def test_investment_funding(self, service, db_session, owner, make_account, make_investment):
        """Account 500 and investment 1000 -> invest 150 -> 350 and 1150 (15%)."""
        account = await make_account(50_000)
        investment = await make_investment(100_000)

        await service.create_transaction(
            owner.id,
            _create(
                type="investment",
                amount_cents=15_000,
                account_id=account.id,
                investment_id=investment.id,
            ),
        )

        account = await _current(db_session, account)
        investment = await _current(db_session, investment)
        assert account.balance_cents == 35_000
        assert investment.current_value_cents == 115_000
        assert investment.absolute_return_cents == 15_000
        assert investment.percentage_return == pytest.approx(15.0)

    async def test_delete_investment_transaction(self, service, db_session, owner, make_account, make_investment):
        account = await make_account(50_000)
        investment = await make_investment(100_000)
        txn = await service.create_transaction(
            owner.id,
            _create(
                type="investment",
                amount_cents=15_000,
                account_id=account.id,
                investment_id=investment.id,
            ),
        )

        await service.delete_transaction(txn.id, owner.id)

        assert (await _current(db_session, account)).balance_cents == 50_000
        investment = await _current(db_session, investment)
        assert investment.current_value_cents == 100_000
        assert investment.performance == {"absolute_return_cents": 0, "percentage_return": 0.0}

    async def test_move_to_other_investment(self, service, db_session, owner, make_account, make_investment):
        account = await make_account(50_000)
        first = await make_investment(100_000, name="First")
        second = await make_investment(20_000, name="Second", investment_type="bonds")
        txn = await service.create_transaction(
            owner.id,
            _create(
                type="investment",
                amount_cents=10_000,
                account_id=account.id,
                investment_id=first.id,
            ),
        )

        await service.update_transaction(txn.id, owner.id, _update(investment_id=second.id))

        assert (await _current(db_session, first)).current_value_cents == 100_000
        second = await _current(db_session, second)
        assert second.current_value_cents == 30_000
        assert second.percentage_return == pytest.approx(50.0)
        assert (await _current(db_session, account)).balance_cents == 40_000

    async def test_change_investment_amount(self, service, db_session, owner, make_account, make_investment):
        account = await make_account(50_000)
        investment = await make_investment(100_000)
        txn = await service.create_transaction(
            owner.id,
            _create(
                type="investment",
                amount_cents=10_000,
                account_id=account.id,
                investment_id=investment.id,
            ),
        )

        await service.update_transaction(txn.id, owner.id, _update(amount_cents=25_000))

        assert (await _current(db_session, investment)).current_value_cents == 125_000
        assert (await _current(db_session, account)).balance_cents == 25_000

    async def test_investment_to_expense(self, service, db_session, owner, make_account, make_investment):
        account = await make_account(50_000)
        investment = await make_investment(100_000)
        txn = await service.create_transaction(
            owner.id,
            _create(
                type="investment",
                amount_cents=10_000,
                account_id=account.id,
                investment_id=investment.id,
            ),
        )

        await service.update_transaction(txn.id, owner.id, _update(type="expense"))

        assert (await _current(db_session, investment)).current_value_cents == 100_000
        assert (await _current(db_session, account)).balance_cents == 40_000

    async def test_missing_investment_fails_create(self, service, db_session, owner, make_account):
        """An unknown investment id is rejected before anything is written."""
        owner_id = owner.id
        account = await make_account(50_000)

        with pytest.raises(InvestmentNotFoundError):
            await service.create_transaction(
                owner_id,
                _create(
                    type="investment",
                    amount_cents=10_000,
                    account_id=account.id,
                    investment_id=uuid.uuid4(),
                ),
            )

        assert (await _current(db_session, account)).balance_cents == 50_000
        listing = await service.list_transactions(owner_id, TransactionFilters())
        assert listing["total"] == 0

    async def test_investment_reference_checked_on_expense(self, service, owner, make_account):
        owner_id = owner.id
        account = await make_account(50_000)

        with pytest.raises(InvestmentNotFoundError):
            await service.create_transaction(
                owner_id,
                _create(
                    type="expense",
                    amount_cents=10_000,
                    account_id=account.id,
                    investment_id=uuid.uuid4(),
                ),
            )

    async def test_transactions_by_investment(self, service, owner, make_account, make_investment):
        account = await make_account(50_000)
        investment = await make_investment(100_000)
        for amount in (1_000, 2_000):
            await service.create_transaction(
                owner.id,
                _create(
                    type="investment",
                    amount_cents=amount,
                    account_id=account.id,
                    investment_id=investment.id,
                ),
            )
        await service.create_transaction(
            owner.id, _create(type="investment", amount_cents=500, account_id=account.id)
        )

        rows = await service.get_transactions_by_investment(owner.id, investment.id)
        assert sorted(t.amount_cents for t in rows) == [1_000, 2_000]

    async def test_transactions_by_missing_investment(self, service, owner):
        with pytest.raises(InvestmentNotFoundError):
            await service.get_transactions_by_investment(owner.id, uuid.uuid4())


class TestCreditCardScenarios:
    """Expenses charged to a card hit the card, never the account."""

    async def test_card_expense_lifecycle(self, service, db_session, owner, make_account, make_credit_card):
        account = await make_account(100_000)
        card = await make_credit_card()

        txn = await service.create_transaction(
            owner.id,
            _create(
                type="expense",
                amount_cents=25_000,
                account_id=account.id,
                credit_card_id=card.id,
            ),
        )
        assert (await _current(db_session, card)).current_balance_cents == 25_000
        assert (await _current(db_session, account)).balance_cents == 100_000

        await service.update_transaction(txn.id, owner.id, _update(amount_cents=30_000))
        assert (await _current(db_session, card)).current_balance_cents == 30_000

        await service.delete_transaction(txn.id, owner.id)
        assert (await _current(db_session, card)).current_balance_cents == 0
        assert (await _current(db_session, account)).balance_cents == 100_000

    async def test_detach_card_moves_charge_to_account(self, service, db_session, owner, make_account, make_credit_card):
        account = await make_account(100_000)
        card = await make_credit_card()
        txn = await service.create_transaction(
            owner.id,
            _create(
                type="expense",
                amount_cents=25_000,
                account_id=account.id,
                credit_card_id=card.id,
            ),
        )

        await service.update_transaction(txn.id, owner.id, _update(credit_card_id=None))

        assert (await _current(db_session, card)).current_balance_cents == 0
        assert (await _current(db_session, account)).balance_cents == 75_000

    async def test_missing_card_fails_create(self, service, db_session, owner, make_account):
        owner_id = owner.id
        account = await make_account(100_000)

        with pytest.raises(CreditCardNotFoundError):
            await service.create_transaction(
                owner_id,
                _create(
                    type="expense",
                    amount_cents=25_000,
                    account_id=account.id,
                    credit_card_id=uuid.uuid4(),
                ),
            )

        listing = await service.list_transactions(owner_id, TransactionFilters())
        assert listing["total"] == 0


class TestAtomicity:
    """
    A failure part-way through leaves every balance as it was.

    The rollback expires every instance in the session, so ids are read
    before the failing call.
    """

    async def test_missing_target_account_restores_original(self, service, db_session, owner, make_account):
        owner_id = owner.id
        account = await make_account(100_000)
        account_id = account.id
        txn = await service.create_transaction(
            owner_id, _create(type="expense", amount_cents=20_000, account_id=account_id)
        )
        txn_id = txn.id

        with pytest.raises(AccountNotFoundError) as exc_info:
            await service.update_transaction(txn_id, owner_id, _update(account_id=uuid.uuid4()))
        assert exc_info.value.role == "target"

        assert (await _current(db_session, account)).balance_cents == 80_000
        reloaded = await service.get_transaction(txn_id, owner_id)
        assert reloaded.account_id == account_id

    async def test_missing_account_on_create_persists_nothing(self, service, owner):
        owner_id = owner.id
        with pytest.raises(AccountNotFoundError):
            await service.create_transaction(
                owner_id, _create(type="income", amount_cents=100, account_id=uuid.uuid4())
            )

        listing = await service.list_transactions(owner_id, TransactionFilters())
        assert listing["total"] == 0

    async def test_unknown_transaction(self, service, owner):
        owner_id = owner.id
        with pytest.raises(TransactionNotFoundError):
            await service.update_transaction(uuid.uuid4(), owner_id, _update(amount_cents=1))
        with pytest.raises(TransactionNotFoundError):
            await service.delete_transaction(uuid.uuid4(), owner_id)

    async def test_other_owner_is_not_found(self, service, db_session, owner, make_account):
        account = await make_account(100_000)
        txn = await service.create_transaction(
            owner.id, _create(type="expense", amount_cents=20_000, account_id=account.id)
        )

        stranger = uuid.uuid4()
        with pytest.raises(TransactionNotFoundError):
            await service.delete_transaction(txn.id, stranger)
        assert (await _current(db_session, account)).balance_cents == 80_000


    async def test_missing_category_fails_update(self, service, db_session, owner, make_account):
        owner_id = owner.id
        account = await make_account(100_000)
        txn = await service.create_transaction(
            owner_id, _create(type="expense", amount_cents=20_000, account_id=account.id)
        )
        txn_id = txn.id

        with pytest.raises(CategoryNotFoundError):
            await service.update_transaction(
                txn_id, owner_id, _update(amount_cents=5_000, category_id=uuid.uuid4())
            )

        assert (await _current(db_session, account)).balance_cents == 80_000
        reloaded = await service.get_transaction(txn_id, owner_id)
        assert reloaded.amount_cents == 20_000
        assert reloaded.category_id is None

    async def test_card_reference_checked_on_income(self, service, db_session, owner, make_account):
        owner_id = owner.id
        account = await make_account(100_000)

        with pytest.raises(CreditCardNotFoundError):
            await service.create_transaction(
                owner_id,
                _create(
                    type="income",
                    amount_cents=1_000,
                    account_id=account.id,
                    credit_card_id=uuid.uuid4(),
                ),
            )
        assert (await _current(db_session, account)).balance_cents == 100_000


class TestUnitOfWork:
    """SessionUnitRunner commits, rolls back and times out."""

    async def test_commit_on_success(self, db_session, owner, make_account):
        account = await make_account(1_000)
        runner = SessionUnitRunner(db_session)

        async def unit(session):
            account.balance_cents = 2_000
            await session.flush()
            return "done"

        assert await runner.run(unit) == "done"
        assert (await _current(db_session, account)).balance_cents == 2_000

    async def test_rollback_on_error(self, db_session, owner, make_account):
        account = await make_account(1_000)
        runner = SessionUnitRunner(db_session)

        async def unit(session):
            account.balance_cents = 2_000
            await session.flush()
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await runner.run(unit)
        assert (await _current(db_session, account)).balance_cents == 1_000

    async def test_timeout_rolls_back(self, db_session, owner, make_account):
        account = await make_account(1_000)
        runner = SessionUnitRunner(db_session, timeout_seconds=0.05)

        async def unit(session):
            account.balance_cents = 2_000
            await session.flush()
            await asyncio.sleep(1)

        with pytest.raises(UnitOfWorkTimeoutError):
            await runner.run(unit)
        assert (await _current(db_session, account)).balance_cents == 1_000


class RecordingAccountRepository(SQLAlchemyAccountRepository):
    """Remembers the order in which accounts were locked."""

    def __init__(self):
        self.locked = []

    async def find_by_id(self, session, account_id, owner_id):
        self.locked.append(account_id)
        return await super().find_by_id(session, account_id, owner_id)


class TestLockOrdering:
    """
    Rows are locked in sorted id order whichever way a transaction moves,
    so two units moving transactions in opposite directions cannot wait on
    each other.
    """

    @pytest.fixture
    def accounts(self):
        return RecordingAccountRepository()

    @pytest.fixture
    def recording_service(self, db_session, accounts):
        return TransactionService(
            runner=SessionUnitRunner(db_session, timeout_seconds=5),
            transactions=SQLAlchemyTransactionRepository(),
            accounts=accounts,
            investments=SQLAlchemyInvestmentRepository(),
            credit_cards=SQLAlchemyCreditCardRepository(),
            categories=SQLAlchemyCategoryRepository(),
        )

    @pytest.mark.parametrize("low_to_high", [True, False])
    async def test_move_locks_accounts_in_sorted_order(
        self, recording_service, accounts, owner, make_account, low_to_high
    ):
        owner_id = owner.id
        first = await make_account(100_000, name="First")
        second = await make_account(100_000, name="Second")
        low, high = sorted([first.id, second.id])
        source, destination = (low, high) if low_to_high else (high, low)

        txn = await recording_service.create_transaction(
            owner_id, _create(type="expense", amount_cents=1_000, account_id=source)
        )
        accounts.locked.clear()

        await recording_service.update_transaction(txn.id, owner_id, _update(account_id=destination))

        assert accounts.locked == [low, high]

    async def test_same_account_locked_once(self, recording_service, accounts, owner, make_account):
        owner_id = owner.id
        account = await make_account(100_000)
        txn = await recording_service.create_transaction(
            owner_id, _create(type="expense", amount_cents=1_000, account_id=account.id)
        )
        accounts.locked.clear()

        await recording_service.update_transaction(txn.id, owner_id, _update(amount_cents=2_000))

        assert accounts.locked == [account.id]
