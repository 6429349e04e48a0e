import pytest
from pydantic import ValidationError

from pollster.models.query import Query
from pollster.models.task import Task


class TestQuery:

    def test_topic_is_canonical(self):
        one = Query.model_validate({"feedId": "A", "count": 3, "lang": "en"})
        two = Query.model_validate({"lang": "en", "count": 3, "feedId": "A"})
        assert one.topic == two.topic == '{"count":3,"feedId":"A","lang":"en"}'

    def test_unset_fields_not_in_topic(self):
        assert Query(feed_id="A").topic == '{"feedId":"A"}'

    def test_different_fields_different_topic(self):
        assert Query(feed_id="A").topic != Query(feed_id="A", after="e1").topic

    def test_with_updates_copies(self):
        query = Query(feed_id="A")
        updated = query.with_updates(after="e1", count=3)
        assert updated.to_params() == {"feedId": "A", "after": "e1", "count": 3}
        assert query.to_params() == {"feedId": "A"}

    def test_frozen(self):
        query = Query(feed_id="A")
        with pytest.raises(ValidationError):
            query.feed_id = "B"

    @pytest.mark.parametrize("data", [{}, {"feedId": ""}, {"feedId": "A", "count": 0}])
    def test_invalid(self, data):
        with pytest.raises(ValidationError):
            Query.model_validate(data)


class TestTask:

    def test_defaults(self):
        task = Task(Query(feed_id="A"))
        assert task.topic == Query(feed_id="A").topic
        assert task.feed_id == "A"
        assert task.is_first_fetch() is True
        assert (task.last_update_time, task.last_fetched_time, task.no_fetch_before) == (0, 0, 0)
        assert task.latest_result is None
        assert task.latest_entry_id is None

    def test_identity_equality(self):
        assert Task(Query(feed_id="A")) != Task(Query(feed_id="A"))
