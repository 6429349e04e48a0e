from unittest.mock import MagicMock, patch

from pollster.main import build_parser, log_update, main
from pollster.models.query import Query
from tests.configs.fakes import FakeDocument


def test_parser_defaults():
    args = build_parser().parse_args(["A", "B"])
    assert args.feed_ids == ["A", "B"]
    assert args.log_level == "INFO"
    assert args.tick > 0


def test_log_update_prefers_entry_time():
    document = FakeDocument(updated="feed-time", entry_id="e1", entry_updated="entry-time")
    with patch("pollster.main.logger") as logger_mock:
        log_update(document, Query(feed_id="A"))
    message = logger_mock.info.call_args.args[0]
    assert "e1" in message
    assert "entry-time" in message


def test_main_subscribes_each_feed_until_interrupted():
    pollster = MagicMock()
    pollster.__enter__.return_value = pollster

    with patch("pollster.main.Pollster", return_value=pollster) as pollster_cls, \
            patch("pollster.main.HttpFeedSource") as source_cls, \
            patch("time.sleep", side_effect=KeyboardInterrupt):
        main(["A", "B", "--url", "http://feeds.example.org/feed", "--tick", "2"])

    source_cls.assert_called_once_with("http://feeds.example.org/feed")
    assert pollster_cls.call_args.kwargs["tick_seconds"] == 2.0  # noqa: PLR2004
    subscribed = [c.args[0].feed_id for c in pollster.subscribe.call_args_list]
    assert subscribed == ["A", "B"]
    pollster.unsubscribe.assert_called_once()
    pollster.__exit__.assert_called_once()
