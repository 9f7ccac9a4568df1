"""Tests for the manual frame clock and the throttled commit."""

from nexus_shell.windows.frames import ManualFrameScheduler, ThrottledCommit


class TestManualFrameScheduler:
    """Verify the deterministic frame clock."""

    def test_callbacks_wait_for_run_frame(self) -> None:
        """Nothing runs until the frame is advanced."""
        frames = ManualFrameScheduler()
        calls: list[int] = []
        frames.request_frame(lambda: calls.append(1))
        assert calls == []
        assert frames.pending == 1
        assert frames.run_frame() == 1
        assert calls == [1]
        assert frames.frames_run == 1

    def test_cancelled_callback_does_not_run(self) -> None:
        """A cancelled request is dropped."""
        frames = ManualFrameScheduler()
        calls: list[int] = []
        handle = frames.request_frame(lambda: calls.append(1))
        frames.cancel_frame(handle)
        frames.cancel_frame(999)
        frames.run_frame()
        assert calls == []

    def test_requests_during_frame_wait_for_next(self) -> None:
        """A callback scheduling another defers it to the following frame."""
        frames = ManualFrameScheduler()
        calls: list[str] = []

        def first() -> None:
            calls.append("first")
            frames.request_frame(lambda: calls.append("second"))

        frames.request_frame(first)
        frames.run_frame()
        assert calls == ["first"]
        frames.run_frame()
        assert calls == ["first", "second"]


class TestThrottledCommit:
    """Verify coalescing to one commit per frame."""

    def test_many_pushes_one_commit(self) -> None:
        """Only the latest value is committed, once."""
        frames = ManualFrameScheduler()
        commits: list[int] = []
        throttle: ThrottledCommit[int] = ThrottledCommit(frames, commits.append)
        for value in range(50):
            throttle.push(value)
        assert frames.pending == 1
        frames.run_frame()
        assert commits == [49]
        assert not throttle.scheduled

    def test_flush_commits_synchronously(self) -> None:
        """flush() commits now and cancels the frame."""
        frames = ManualFrameScheduler()
        commits: list[int] = []
        throttle: ThrottledCommit[int] = ThrottledCommit(frames, commits.append)
        throttle.push(1)
        throttle.flush()
        assert commits == [1]
        assert frames.pending == 0
        frames.run_frame()
        assert commits == [1]

    def test_flush_without_pending_is_noop(self) -> None:
        """Flushing an empty slot commits nothing."""
        commits: list[int] = []
        throttle: ThrottledCommit[int] = ThrottledCommit(ManualFrameScheduler(), commits.append)
        throttle.flush()
        assert commits == []

    def test_cancel_drops_value(self) -> None:
        """cancel() discards the pending value."""
        frames = ManualFrameScheduler()
        commits: list[int] = []
        throttle: ThrottledCommit[int] = ThrottledCommit(frames, commits.append)
        throttle.push(1)
        throttle.cancel()
        frames.run_frame()
        throttle.flush()
        assert commits == []

    def test_push_after_frame_schedules_again(self) -> None:
        """Each frame gets at most one commit."""
        frames = ManualFrameScheduler()
        commits: list[int] = []
        throttle: ThrottledCommit[int] = ThrottledCommit(frames, commits.append)
        throttle.push(1)
        frames.run_frame()
        throttle.push(2)
        throttle.push(3)
        frames.run_frame()
        assert commits == [1, 3]
