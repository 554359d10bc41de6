import threading

from forcelayout.physics.scheduler import Ticker


def test_ticker_calls_back_until_stopped():
    calls = []
    done = threading.Event()

    def callback():
        calls.append(1)
        if len(calls) >= 3:
            done.set()

    ticker = Ticker(callback, interval=0.001)
    assert ticker.start()
    assert done.wait(5.0)
    assert ticker.stop()
    count = len(calls)
    assert count >= 3
    assert not ticker.running
    done.wait(0.05)
    assert len(calls) == count


def test_start_and_stop_are_no_ops_when_repeated():
    ticker = Ticker(lambda: None, interval=3600.0)
    assert ticker.stop() is False
    assert ticker.start() is True
    first = ticker._thread
    assert ticker.start() is False
    assert ticker._thread is first
    assert ticker.stop() is True
    assert ticker.stop() is False


def test_stop_from_inside_callback():
    stopped = threading.Event()
    ticker = None

    def callback():
        ticker.stop()
        stopped.set()

    ticker = Ticker(callback, interval=0.001)
    ticker.start()
    assert stopped.wait(5.0)
    assert not ticker.running


def test_callback_errors_do_not_kill_the_loop():
    calls = []
    done = threading.Event()

    def callback():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("transient")
        done.set()

    ticker = Ticker(callback, interval=0.001)
    ticker.start()
    try:
        assert done.wait(5.0)
    finally:
        ticker.stop()
    assert len(calls) >= 2
