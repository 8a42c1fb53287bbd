import unittest

from tbt_report.analyzer import (
    aggregate_tasks,
    calculate_blocking_time,
    is_potential_tbt_task
)


def _event(**overrides):
    event = {
        "ph": "X",
        "dur": 150000,
        "name": "EvaluateScript",
        "cat": "devtools.timeline,v8",
        "tid": 1
    }
    event.update(overrides)
    return event


class TestClassifier(unittest.TestCase):
    def test_complete_main_thread_script_qualifies(self):
        self.assertTrue(is_potential_tbt_task(_event()))

    def test_requires_complete_phase(self):
        for phase in ["B", "E", "I", None]:
            self.assertFalse(is_potential_tbt_task(_event(ph=phase)))

    def test_requires_duration(self):
        event = _event()
        del event["dur"]
        self.assertFalse(is_potential_tbt_task(event))
        self.assertFalse(is_potential_tbt_task(_event(dur=0)))
        self.assertFalse(is_potential_tbt_task(_event(dur=None)))
        self.assertFalse(is_potential_tbt_task(_event(dur=float("inf"))))
        self.assertFalse(is_potential_tbt_task(_event(dur=float("nan"))))

    def test_scripting_category_qualifies_regardless_of_name(self):
        event = _event(name="SomethingUnrelated", cat="toplevel, SCRIPTING", tid=1)
        self.assertTrue(is_potential_tbt_task(event))

    def test_main_thread_heuristics(self):
        self.assertFalse(is_potential_tbt_task(_event(cat="v8", tid=7)))
        self.assertTrue(is_potential_tbt_task(_event(name="MainThread Script", cat="v8", tid=7)))
        self.assertFalse(is_potential_tbt_task(_event(name="mainthread Script", cat="v8", tid=7)))
        self.assertTrue(is_potential_tbt_task(_event(name="Idle", cat="devtools.timeline", tid=7)))

    def test_name_match_is_case_insensitive(self):
        event = _event(name="v8.compilescript", cat="toplevel")
        self.assertTrue(is_potential_tbt_task(event))

    def test_idle_event_does_not_qualify(self):
        event = _event(name="Idle", cat="idle")
        self.assertFalse(is_potential_tbt_task(event))

    def test_missing_fields_do_not_raise(self):
        self.assertFalse(is_potential_tbt_task({}))
        self.assertFalse(is_potential_tbt_task({"ph": "X", "dur": 1000, "tid": 1}))
        self.assertFalse(is_potential_tbt_task("not-an-event"))


class TestBlockingTime(unittest.TestCase):
    def test_short_tasks_do_not_block(self):
        self.assertEqual(calculate_blocking_time(_event(dur=50000)), 0)
        self.assertEqual(calculate_blocking_time(_event(dur=10)), 0)

    def test_long_task_counts_time_above_threshold(self):
        self.assertAlmostEqual(calculate_blocking_time(_event(dur=150000)), 100.0)
        self.assertAlmostEqual(calculate_blocking_time(_event(dur=50001)), 0.001)

    def test_custom_threshold(self):
        self.assertAlmostEqual(calculate_blocking_time(_event(dur=150000), long_task_ms=100), 50.0)


class TestAggregator(unittest.TestCase):
    def test_single_evaluate_script(self):
        tasks = aggregate_tasks([_event()])
        self.assertEqual(len(tasks), 1)
        task = tasks[0]
        self.assertEqual(task.name, "EvaluateScript")
        self.assertEqual(task.url, "")
        self.assertEqual(task.category, "devtools.timeline,v8")
        self.assertAlmostEqual(task.blocking_time, 100.0)
        self.assertAlmostEqual(task.total_duration, 150.0)
        self.assertEqual(task.occurrences, 1)

    def test_same_name_and_url_are_summed(self):
        url = "https://example.com/app.js"
        events = [
            _event(dur=80000, args={"data": {"url": url}}),
            _event(dur=20000, cat="v8", args={"data": {"url": url}}),
            _event(dur=60000)
        ]
        tasks = {task.key: task for task in aggregate_tasks(events)}
        self.assertEqual(len(tasks), 2)

        with_url = tasks[("EvaluateScript", url)]
        self.assertAlmostEqual(with_url.blocking_time, 30.0)
        self.assertAlmostEqual(with_url.total_duration, 100.0)
        self.assertEqual(with_url.occurrences, 2)
        self.assertEqual(with_url.category, "devtools.timeline,v8")

        without_url = tasks[("EvaluateScript", "")]
        self.assertAlmostEqual(without_url.blocking_time, 10.0)
        self.assertEqual(without_url.occurrences, 1)

    def test_fallbacks_for_missing_name_and_category(self):
        event = {"ph": "X", "dur": 1000, "tid": 1, "cat": "loading"}
        task = aggregate_tasks([event])[0]
        self.assertEqual(task.name, "Unknown Task")
        self.assertEqual(task.category, "loading")

    def test_non_qualifying_events_contribute_nothing(self):
        events = [_event(ph="B"), _event(name="Idle", cat="idle"), _event(dur=0)]
        self.assertEqual(aggregate_tasks(events), [])


if __name__ == "__main__":
    unittest.main()
