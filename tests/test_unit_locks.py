import gc
import threading

from fleetrent.utils.locks import KeyedLocks


def test_same_key_shares_one_reentrant_lock():
    locks = KeyedLocks()
    with locks.hold("vehicle:V1"):
        assert locks.get("vehicle:V1") is locks.get("vehicle:V1")
        with locks.hold("vehicle:V1"):
            pass
        assert locks.get("vehicle:V2") is not locks.get("vehicle:V1")


def test_lock_blocks_other_threads_while_held():
    locks = KeyedLocks()
    seen = []

    with locks.hold("rental:R1"):
        t = threading.Thread(target=lambda: seen.append(locks.get("rental:R1").acquire(timeout=0.05)))
        t.start()
        t.join()

    assert seen == [False]


def test_unused_locks_are_dropped():
    locks = KeyedLocks()
    for i in range(100):
        with locks.hold(f"rental:R{i}"):
            pass
    gc.collect()
    assert len(locks) == 0
