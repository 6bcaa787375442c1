"""
Unit tests for the step store and ledger state.
"""
import unittest
from stepsim.core.errors import OutOfRangeError, SequenceError
from stepsim.simulator.codec import UInt
from stepsim.simulator.state_store import LedgerState, StepStore

class TestStepStore(unittest.TestCase):
    def setUp(self):
        self.store = StepStore([0, 1])
        self.store.begin(0)
        self.store.set(0, 0, "wager", UInt(10))
        self.store.seal(0)

    def test_values_persist_across_steps(self):
        self.store.begin(1)
        self.store.set(1, 1, "handBob", UInt(1))
        self.store.seal(1)
        self.assertEqual(self.store.get(1, 0, "wager"), UInt(10))
        self.assertEqual(self.store.get(1, 1, "handBob"), UInt(1))

    def test_absent_is_none(self):
        self.assertIsNone(self.store.get(0, 1, "wager"))

    def test_later_value_not_visible_earlier(self):
        self.store.begin(1)
        self.store.set(1, 0, "handAlice", UInt(0))
        self.store.seal(1)
        self.assertIsNone(self.store.get(0, 0, "handAlice"))

    def test_unreached_step(self):
        with self.assertRaises(OutOfRangeError):
            self.store.get(1, 0, "wager")
        with self.assertRaises(OutOfRangeError):
            self.store.get(-1, 0, "wager")

    def test_sealed_frame_is_read_only(self):
        with self.assertRaises(SequenceError):
            self.store.set(0, 0, "wager", UInt(11))

    def test_frames_open_in_order(self):
        with self.assertRaises(SequenceError):
            self.store.begin(2)

    def test_discard_leaves_nothing(self):
        self.store.begin(1)
        self.store.set(1, 0, "wager", UInt(99))
        self.store.discard(1)
        self.assertEqual(len(self.store), 1)
        self.assertEqual(self.store.get(0, 0, "wager"), UInt(10))
        self.store.begin(1)
        self.store.seal(1)
        self.assertEqual(self.store.get(1, 0, "wager"), UInt(10))

    def test_overwrite_keeps_insertion_order(self):
        self.store.begin(1)
        self.store.set(1, 0, "handAlice", UInt(0))
        self.store.set(1, 0, "wager", UInt(20))
        self.store.seal(1)
        self.assertEqual(
            self.store.items(1, 0),
            [("wager", UInt(20)), ("handAlice", UInt(0))],
        )

    def test_unknown_participant(self):
        with self.assertRaises(OutOfRangeError):
            self.store.get(0, 5, "wager")

class TestLedgerState(unittest.TestCase):
    def test_settle_returns_new_ledger(self):
        empty = LedgerState()
        settled = empty.settle({0: -10, 1: 10})
        self.assertTrue(empty.is_empty)
        self.assertEqual(settled.amount(1), 10)
        self.assertEqual(settled.amount(0), -10)
        self.assertIsNone(settled.amount(1, offset=0))

    def test_wire_keys_are_strings(self):
        ledger = LedgerState().settle({1: 10})
        self.assertEqual(ledger.to_wire(), {"1": {"-1": 10}})

    def test_equality(self):
        self.assertEqual(LedgerState().settle({1: 10}), LedgerState({1: {-1: 10}}))

if __name__ == '__main__':
    unittest.main()
