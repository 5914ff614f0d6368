"""FloatController and FloatContext."""

import asyncio

from flowsearch.toolkit import FloatContext, FloatController, float_event, get_float_controller


def test_disabled_by_default():
    assert float_event("search.start") is None
    assert get_float_controller().count_floats() == 0


def test_context_collects_and_restores():
    with FloatContext() as fc:
        event = float_event("search.cache.hit", user_id="u1")
        assert fc.has_float("search.cache.hit")

    assert event.data == {"user_id": "u1"}
    assert not fc.enabled
    assert float_event("search.cache.hit") is None


def test_glob_filtering_and_report():
    with FloatContext() as fc:
        float_event("search.cache.miss")
        float_event("search.cache.hit")
        float_event("search.llm.call")

    assert fc.count_floats("search.cache.*") == 2
    assert fc.get_float("search.llm.call") is not None
    assert fc.get_float("search.llm.call", index=1) is None
    assert fc.get_report()["float_counts"] == {
        "search.cache.miss": 1,
        "search.cache.hit": 1,
        "search.llm.call": 1,
    }


def test_entering_context_clears_previous_floats():
    with FloatContext():
        float_event("search.start")

    with FloatContext() as fc:
        assert fc.count_floats() == 0


def test_max_events_drops_oldest():
    controller = FloatController(enabled=True, max_events=2)

    controller.float("a")
    controller.float("b")
    controller.float("c")

    assert [e.name for e in controller.get_floats()] == ["b", "c"]
    assert not controller.has_float("a")


def test_trace_ids_are_context_local():
    async def traced(name):
        trace_id = FloatController.new_trace()
        await asyncio.sleep(0)
        float_event(name)
        return trace_id

    async def run():
        return await asyncio.gather(traced("first"), traced("second"))

    with FloatContext() as fc:
        first_trace, second_trace = asyncio.run(run())

    assert first_trace != second_trace
    assert fc.get_float("first").trace_id == first_trace
    assert fc.get_float("second").trace_id == second_trace
