import threading
import unittest

from lottery.errors import (
    AlreadyEntered,
    InsufficientFunds,
    InvalidEntrant,
    NoEntrants,
    NotAdmin,
    RoundClosed,
    TransferError,
    WrongAmount,
)
from lottery.ledger import InMemoryLedger
from lottery.round import LotteryRound
from lottery.selection import IndexWinnerSelector, WinnerSelector
from lottery.types import RoundStatus

ADMIN = "0xadmin"
PRICE = 10


class FailingLedger(InMemoryLedger):
    def __init__(self, balances, fail_from=None) -> None:
        super().__init__(balances)
        self.fail_from = fail_from

    def transfer(self, source, destination, amount) -> None:
        if source == self.fail_from:
            raise TransferError("ledger offline")
        super().transfer(source, destination, amount)


class OutsiderSelector(WinnerSelector):
    def select(self, entrants):
        return "0xnobody"


class LotteryRoundTests(unittest.TestCase):
    def setUp(self) -> None:
        self.ledger = InMemoryLedger({"0xb": 100, "0xc": 100, "0xd": 5})
        self.round = LotteryRound(ADMIN, PRICE, self.ledger, selector=IndexWinnerSelector(0))

    def test_new_round_is_open_and_empty(self) -> None:
        self.assertEqual(self.round.admin, ADMIN)
        self.assertEqual(self.round.ticket_price, PRICE)
        self.assertTrue(self.round.drawing)
        self.assertEqual(self.round.status, RoundStatus.OPEN)
        self.assertEqual(self.round.entrants, ())
        self.assertEqual(self.round.balance, 0)
        self.assertIsNone(self.round.last_result)

    def test_rejects_invalid_construction(self) -> None:
        with self.assertRaises(ValueError):
            LotteryRound("", PRICE, self.ledger)
        with self.assertRaises(ValueError):
            LotteryRound(ADMIN, 0, self.ledger)
        with self.assertRaises(ValueError):
            LotteryRound(ADMIN, -5, self.ledger)
        with self.assertRaises(ValueError):
            LotteryRound(ADMIN, 10.0, self.ledger)
        with self.assertRaises(ValueError):
            LotteryRound(ADMIN, PRICE, self.ledger, account=ADMIN)

    def test_enter_appends_entrant_and_collects_price(self) -> None:
        index = self.round.enter_lottery("0xb", PRICE)

        self.assertEqual(index, 0)
        self.assertEqual(self.round.entrants, ("0xb",))
        self.assertEqual(self.round.entrant(0), "0xb")
        self.assertEqual(self.round.balance, PRICE)
        self.assertEqual(self.ledger.balance_of("0xb"), 90)
        self.assertEqual(self.ledger.balance_of(self.round.account), PRICE)

        self.assertEqual(self.round.enter_lottery("0xc", PRICE), 1)
        self.assertEqual(self.round.entrants[-1], "0xc")
        self.assertEqual(self.round.balance, 2 * PRICE)

    def test_second_entry_is_rejected(self) -> None:
        self.round.enter_lottery("0xb", PRICE)

        with self.assertRaises(AlreadyEntered) as ctx:
            self.round.enter_lottery("0xb", PRICE)

        self.assertEqual(str(ctx.exception), "can only buy one ticket")
        self.assertEqual(self.round.entrants, ("0xb",))
        self.assertEqual(self.round.balance, PRICE)
        self.assertEqual(self.ledger.balance_of("0xb"), 90)

    def test_zero_payment_is_insufficient(self) -> None:
        with self.assertRaises(InsufficientFunds) as ctx:
            self.round.enter_lottery("0xb", 0)
        self.assertEqual(ctx.exception.message, "balance too low")
        self.assertEqual(self.round.entrants, ())

    def test_payment_above_caller_balance_is_insufficient(self) -> None:
        with self.assertRaises(InsufficientFunds):
            self.round.enter_lottery("0xd", PRICE)
        self.assertEqual(self.ledger.balance_of("0xd"), 5)
        self.assertEqual(self.round.balance, 0)

    def test_payment_must_be_exact(self) -> None:
        for amount in (PRICE - 1, PRICE + 1):
            with self.subTest(amount=amount):
                with self.assertRaises(WrongAmount) as ctx:
                    self.round.enter_lottery("0xb", amount)
                self.assertEqual(
                    ctx.exception.message, "have to pay the exact amount for the ticket"
                )
        self.assertEqual(self.round.entrants, ())
        self.assertEqual(self.ledger.balance_of("0xb"), 100)

    def test_wrong_amount_takes_precedence_over_missing_funds(self) -> None:
        for amount in (PRICE - 1, PRICE + 1):
            with self.subTest(amount=amount):
                with self.assertRaises(WrongAmount):
                    self.round.enter_lottery("0xd", amount)
        self.assertEqual(self.ledger.balance_of("0xd"), 5)
        self.assertEqual(self.round.entrants, ())

    def test_round_account_cannot_enter(self) -> None:
        self.round.enter_lottery("0xb", PRICE)
        self.ledger.deposit(self.round.account, PRICE)

        with self.assertRaises(InvalidEntrant):
            self.round.enter_lottery(self.round.account, PRICE)

        self.assertEqual(self.round.entrants, ("0xb",))
        self.assertEqual(self.round.balance, PRICE)
        self.assertEqual(self.ledger.balance_of(self.round.account), 2 * PRICE)

        result = self.round.decide_winner(ADMIN)
        self.assertEqual(result.payout, PRICE)
        self.assertEqual(self.round.balance, 0)

    def test_only_admin_can_decide_winner(self) -> None:
        self.round.enter_lottery("0xb", PRICE)

        with self.assertRaises(NotAdmin) as ctx:
            self.round.decide_winner("0xb")

        self.assertEqual(str(ctx.exception), "only admin can decide the winner")
        self.assertEqual(self.round.entrants, ("0xb",))
        self.assertEqual(self.round.balance, PRICE)
        self.assertTrue(self.round.drawing)

    def test_decide_winner_pays_out_and_resets(self) -> None:
        self.round.enter_lottery("0xb", PRICE)

        result = self.round.decide_winner(ADMIN)

        self.assertEqual(result.winner, "0xb")
        self.assertEqual(result.payout, PRICE)
        self.assertEqual(result.entrant_count, 1)
        self.assertEqual(self.round.entrants, ())
        self.assertEqual(self.round.balance, 0)
        self.assertEqual(self.ledger.balance_of("0xb"), 100)
        self.assertEqual(self.ledger.balance_of(self.round.account), 0)
        self.assertFalse(self.round.drawing)
        self.assertEqual(self.round.status, RoundStatus.SETTLED)
        self.assertEqual(self.round.last_result, result)

    def test_winner_receives_whole_pot(self) -> None:
        selected = LotteryRound(ADMIN, PRICE, self.ledger, selector=IndexWinnerSelector(1))
        selected.enter_lottery("0xb", PRICE)
        selected.enter_lottery("0xc", PRICE)

        result = selected.decide_winner(ADMIN)

        self.assertEqual(result.winner, "0xc")
        self.assertEqual(result.payout, 2 * PRICE)
        self.assertEqual(self.ledger.balance_of("0xb"), 90)
        self.assertEqual(self.ledger.balance_of("0xc"), 110)
        self.assertEqual(len(selected.entrants), 0)

    def test_settled_round_rejects_entries_and_draws(self) -> None:
        self.round.enter_lottery("0xb", PRICE)
        self.round.decide_winner(ADMIN)

        with self.assertRaises(RoundClosed):
            self.round.enter_lottery("0xc", PRICE)
        with self.assertRaises(RoundClosed):
            self.round.decide_winner(ADMIN)
        self.assertEqual(self.ledger.balance_of("0xc"), 100)

    def test_draw_without_entrants_is_rejected(self) -> None:
        with self.assertRaises(NoEntrants):
            self.round.decide_winner(ADMIN)
        self.assertTrue(self.round.drawing)

    def test_selector_must_return_an_entrant(self) -> None:
        rogue = LotteryRound(ADMIN, PRICE, self.ledger, selector=OutsiderSelector())
        rogue.enter_lottery("0xb", PRICE)

        with self.assertRaises(ValueError):
            rogue.decide_winner(ADMIN)
        self.assertEqual(rogue.entrants, ("0xb",))
        self.assertEqual(rogue.balance, PRICE)

    def test_failed_entry_transfer_leaves_round_unchanged(self) -> None:
        ledger = FailingLedger({"0xb": 100}, fail_from="0xb")
        broken = LotteryRound(ADMIN, PRICE, ledger)

        with self.assertRaises(TransferError):
            broken.enter_lottery("0xb", PRICE)
        self.assertEqual(broken.entrants, ())
        self.assertEqual(broken.balance, 0)

    def test_failed_payout_leaves_round_unchanged(self) -> None:
        ledger = FailingLedger({"0xb": 100}, fail_from="lottery-round")
        broken = LotteryRound(ADMIN, PRICE, ledger)
        broken.enter_lottery("0xb", PRICE)

        with self.assertRaises(TransferError):
            broken.decide_winner(ADMIN)
        self.assertEqual(broken.entrants, ("0xb",))
        self.assertEqual(broken.balance, PRICE)
        self.assertTrue(broken.drawing)

    def test_entrant_index_out_of_range(self) -> None:
        with self.assertRaises(IndexError):
            self.round.entrant(0)
        with self.assertRaises(IndexError):
            self.round.entrant(-1)

    def test_snapshot_is_detached(self) -> None:
        self.round.enter_lottery("0xb", PRICE)
        snapshot = self.round.snapshot()
        self.round.enter_lottery("0xc", PRICE)

        self.assertEqual(snapshot.entrants, ("0xb",))
        self.assertEqual(snapshot.balance, PRICE)
        self.assertEqual(snapshot.to_dict()["status"], "OPEN")

    def test_concurrent_entries_are_not_lost(self) -> None:
        players = [f"0x{i:02x}" for i in range(40)]
        ledger = InMemoryLedger({player: PRICE for player in players})
        shared = LotteryRound(ADMIN, PRICE, ledger)
        barrier = threading.Barrier(len(players))

        def enter(player: str) -> None:
            barrier.wait()
            shared.enter_lottery(player, PRICE)

        threads = [threading.Thread(target=enter, args=(p,)) for p in players]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(sorted(shared.entrants), players)
        self.assertEqual(shared.balance, PRICE * len(players))
        self.assertEqual(ledger.balance_of(shared.account), PRICE * len(players))

    def test_admin_scenario(self) -> None:
        ledger = InMemoryLedger({"B": 10})
        scenario = LotteryRound("A", 10, ledger)

        scenario.enter_lottery("B", 10)
        self.assertEqual(scenario.entrants, ("B",))
        self.assertEqual(scenario.balance, 10)

        result = scenario.decide_winner("A")
        self.assertEqual(result.winner, "B")
        self.assertEqual(scenario.entrants, ())
        self.assertEqual(scenario.balance, 0)
        self.assertEqual(ledger.balance_of("B"), 10)
        self.assertEqual(scenario.admin, "A")
        self.assertEqual(scenario.ticket_price, 10)


if __name__ == "__main__":
    unittest.main()
