import threading

import pytest

from digitalme.services.learning.collector import MessageCollector, contains_code

TEN_TOKENS = "this sentence has exactly ten tokens in it now yes"


@pytest.fixture
def collector(clock) -> MessageCollector:
    return MessageCollector(batch_size_threshold=10, inactivity_threshold_seconds=300, min_word_count=10, clock=clock)


class TestQualityFilter:
    """Which messages count as learning evidence."""

    def test_short_message_rejected(self, collector):
        assert collector.add_message("ok") is False
        assert collector.stats()["messageCount"] == 0

    def test_ten_tokens_accepted(self, collector):
        assert collector.add_message(TEN_TOKENS) is True

    def test_inline_code_accepted_regardless_of_length(self, collector):
        assert collector.add_message("`x=1`") is True

    def test_fenced_code_accepted(self, collector):
        assert collector.add_message("```\nprint(1)\n```") is True

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_blank_rejected(self, collector, text):
        assert collector.add_message(text) is False

    def test_contractions_count_once(self, collector):
        assert collector.add_message("don't won't can't shouldn't I'm you're we're they're it's") is False
        assert collector.add_message("I don't think we'll make it to the meeting on time") is True

    def test_contains_code(self):
        assert contains_code("use `git rebase` here")
        assert not contains_code("a lone ` backtick")


class TestBatchTriggers:
    """Size and inactivity triggers for dispatching a batch."""

    def test_empty_batch_never_sends(self, collector, clock):
        clock.advance(10_000)
        assert collector.should_send_batch() is False

    def test_tenth_message_triggers_immediately(self, collector):
        for _ in range(9):
            collector.add_message(TEN_TOKENS)
        assert collector.should_send_batch() is False
        collector.add_message(TEN_TOKENS)
        assert collector.should_send_batch() is True

    def test_inactivity_trigger(self, collector, clock):
        collector.add_message(TEN_TOKENS)
        clock.advance(299)
        assert collector.should_send_batch() is False
        clock.advance(1)
        assert collector.should_send_batch() is True

    def test_new_message_refreshes_inactivity_window(self, collector, clock):
        collector.add_message(TEN_TOKENS)
        clock.advance(200)
        collector.add_message(TEN_TOKENS)
        clock.advance(200)
        assert collector.should_send_batch() is False
        assert collector.time_since_last_message() == 200


class TestBatchLifecycle:
    """Reading, clearing and pausing the batch."""

    def test_get_batch_returns_and_clears(self, collector):
        collector.add_message(TEN_TOKENS)
        collector.add_message("`x=1`")

        assert collector.get_batch() == [TEN_TOKENS, "`x=1`"]
        assert collector.get_batch() == []
        assert collector.time_since_last_message() is None

    def test_disabled_learning_ignores_messages(self, clock):
        collector = MessageCollector(learning_enabled=False, clock=clock)
        assert collector.add_message(TEN_TOKENS) is False
        assert collector.get_batch() == []

    def test_disabling_discards_pending(self, collector):
        collector.add_message(TEN_TOKENS)
        collector.set_learning_enabled(False)

        assert collector.learning_enabled is False
        assert collector.get_batch() == []

        collector.set_learning_enabled(True)
        assert collector.add_message(TEN_TOKENS) is True

    def test_disabled_while_filtering_is_not_queued(self, collector, monkeypatch):
        """A message in flight when learning is switched off must not survive into a later batch."""
        original_filter = collector.is_quality_message

        def filter_then_disable(text):
            accepted = original_filter(text)
            collector.set_learning_enabled(False)
            return accepted

        monkeypatch.setattr(collector, "is_quality_message", filter_then_disable)

        assert collector.add_message(TEN_TOKENS) is False
        assert collector.stats() == {"messageCount": 0, "wordCount": 0}

        monkeypatch.setattr(collector, "is_quality_message", original_filter)
        collector.set_learning_enabled(True)
        assert collector.get_batch() == []

    def test_enabling_with_pending_restarts_window(self, collector, clock):
        collector.add_message(TEN_TOKENS)
        clock.advance(299)
        collector.set_learning_enabled(True)
        clock.advance(2)
        assert collector.should_send_batch() is False

    def test_stats(self, collector):
        collector.add_message(TEN_TOKENS)
        collector.add_message("`x=1`")
        assert collector.stats() == {"messageCount": 2, "wordCount": 11}

    def test_concurrent_add_and_get_lose_nothing(self):
        collector = MessageCollector(batch_size_threshold=10_000, min_word_count=1)
        collected: list[str] = []
        stop = threading.Event()

        def drain():
            while not stop.is_set():
                collected.extend(collector.get_batch())

        def produce(worker: int):
            for i in range(250):
                collector.add_message(f"worker {worker} message {i}")

        drainer = threading.Thread(target=drain)
        producers = [threading.Thread(target=produce, args=(n,)) for n in range(4)]
        drainer.start()
        for thread in producers:
            thread.start()
        for thread in producers:
            thread.join()
        stop.set()
        drainer.join()
        collected.extend(collector.get_batch())

        assert len(collected) == 1000
        assert len(set(collected)) == 1000
