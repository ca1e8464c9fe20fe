import threading
import time
import unittest

from keymap_viewer.telemetry import KeyBitset, KeyboardState, StateSlot

TOTAL_KEYS = 200


def make_state(ind: int) -> KeyboardState:
    key = ind % TOTAL_KEYS
    return KeyboardState(key, KeyBitset.from_indices([key], TOTAL_KEYS))


class TestStateSlot(unittest.TestCase):

    def test_initial_state(self):
        slot = StateSlot(KeyboardState.initial(TOTAL_KEYS))
        self.assertEqual(slot.sequence, 0)
        self.assertEqual(slot.latest(), KeyboardState.initial(TOTAL_KEYS))

    def test_newer_states_overwrite(self):
        slot = StateSlot(KeyboardState.initial(TOTAL_KEYS))
        for ind in range(5):
            slot.publish(make_state(ind))
        self.assertEqual(slot.sequence, 5)
        self.assertEqual(slot.latest(), make_state(4))
        self.assertEqual(slot.snapshot(), (5, make_state(4)))

    def test_burst_without_consumer_does_not_block(self):
        slot = StateSlot(KeyboardState.initial(TOTAL_KEYS))
        states = [make_state(ind) for ind in range(10000)]
        producer = threading.Thread(target=lambda: [slot.publish(state) for state in states])
        producer.start()
        producer.join(timeout=5.0)
        self.assertFalse(producer.is_alive())
        self.assertEqual(slot.sequence, 10000)
        self.assertEqual(slot.latest(), states[-1])

    def test_no_torn_reads(self):
        slot = StateSlot(make_state(0))
        states = [make_state(ind) for ind in range(20000)]
        done = threading.Event()
        torn = []

        def consume():
            while not done.is_set():
                state = slot.latest()
                if list(state.pressed) != [state.active_layer]:
                    torn.append(state)

        consumer = threading.Thread(target=consume)
        consumer.start()
        start = time.monotonic()
        for state in states:
            slot.publish(state)
        elapsed = time.monotonic() - start
        done.set()
        consumer.join(timeout=5.0)

        self.assertEqual(torn, [])
        self.assertEqual(slot.sequence, len(states))
        self.assertLess(elapsed, 10.0)


if __name__ == "__main__":
    unittest.main()
