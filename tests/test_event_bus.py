import threading
import unittest
from unittest.mock import MagicMock

from mapdraft.event_bus import EDIT_END, FEATURE_UPDATE, FINISH_EDIT, NEW_EDIT, QtEventBus
from mapdraft.features import DraftLine, DraftPoint, DraftSquare
from mapdraft.projector import WebMercatorProjector
from mapdraft.store import DraftStore


class TestQtEventBus(unittest.TestCase):

    def setUp(self):
        self.bus = QtEventBus()

    def test_publish_reaches_subscribers_in_order(self):
        calls = []
        self.bus.subscribe("a", lambda payload: calls.append(("first", payload)))
        self.bus.subscribe("a", lambda payload: calls.append(("second", payload)))
        self.bus.subscribe("b", lambda payload: calls.append(("other", payload)))

        self.bus.publish("a", {"x": 1})
        self.assertEqual(calls, [("first", {"x": 1}), ("second", {"x": 1})])

    def test_payload_is_passed_through(self):
        handler = MagicMock()
        payload = {"geojson": {"type": "FeatureCollection", "features": []}}
        self.bus.subscribe("evt", handler)
        self.bus.publish("evt", payload)
        self.assertIs(handler.call_args.args[0], payload)

    def test_default_payload_is_none(self):
        handler = MagicMock()
        self.bus.subscribe("evt", handler)
        self.bus.publish("evt")
        handler.assert_called_once_with(None)

    def test_unsubscribe(self):
        handler = MagicMock()
        self.bus.subscribe("evt", handler)
        self.bus.unsubscribe("evt", handler)
        self.bus.unsubscribe("never", handler)
        self.bus.publish("evt")
        handler.assert_not_called()
        self.assertEqual(self.bus.subscribers("evt"), ())

    def test_fired_signal_connects_like_qt(self):
        received = []
        self.bus.fired.connect(lambda name, payload: received.append((name, payload)))
        self.bus.publish("evt", 3)
        self.assertEqual(received, [("evt", 3)])

    def test_handler_may_unsubscribe_during_dispatch(self):
        second = MagicMock()

        def first(payload):
            self.bus.unsubscribe("evt", first)

        self.bus.subscribe("evt", first)
        self.bus.subscribe("evt", second)
        self.bus.publish("evt")
        second.assert_called_once()
        self.assertEqual(self.bus.subscribers("evt"), (second,))

    def test_publish_from_worker_thread_is_delivered(self):
        got = []
        self.bus.subscribe("evt", got.append)

        worker = threading.Thread(target=self.bus.publish, args=("evt", 1))
        worker.start()
        worker.join()

        self.assertEqual(got, [1])

    def test_failing_subscriber_reaches_publisher_after_others_run(self):
        def boom(payload):
            raise RuntimeError("renderer crashed")

        second = MagicMock()
        fired = []
        self.bus.fired.connect(lambda name, payload: fired.append(name))
        self.bus.subscribe("evt", boom)
        self.bus.subscribe("evt", second)

        with self.assertLogs("mapdraft.event_bus", level="ERROR"):
            with self.assertRaises(RuntimeError):
                self.bus.publish("evt", 5)
        second.assert_called_once_with(5)
        self.assertEqual(fired, ["evt"])


class TestDraftStoreOnQtEventBus(unittest.TestCase):
    """Drives the store only through bus events, as the map widget does."""

    def setUp(self):
        self.bus = QtEventBus()
        self.updates = []
        self.bus.subscribe(FEATURE_UPDATE, self.updates.append)
        projector = WebMercatorProjector(center=(-70.65, -33.45), zoom=14, width=800, height=600)
        self.store = DraftStore(projector, self.bus)

    def test_edit_session(self):
        line = DraftLine([(-70.66, -33.45), (-70.65, -33.44), (-70.64, -33.45)], "line-1")
        square = DraftSquare((-70.66, -33.46), (-70.65, -33.455), "sq-1")
        self.store.add([line, square])

        features = self.updates[-1]["geojson"]["features"]
        metas = [f["properties"].get("meta") for f in features]
        # 2 drafts, 3 + 4 vertices, midpoints only for the line
        self.assertEqual(metas.count("vertex"), 7)
        self.assertEqual(metas.count("midpoint"), 2)

        self.bus.publish(EDIT_END, {"geometry": {"drawId": "line-1"}})
        self.assertEqual([f.draw_id for f in self.store.get_all()], ["sq-1"])
        self.assertEqual(self.updates[-1]["geojson"]["features"][0]["properties"]["drawId"], "sq-1")

        self.bus.publish(FINISH_EDIT)
        self.assertFalse(self.store.in_progress())
        self.assertEqual(self.updates[-1], {"geojson": {"type": "FeatureCollection", "features": []}})

    def test_new_edit_rebroadcasts(self):
        self.store.add(DraftPoint((-70.65, -33.45), "p"))
        count = len(self.updates)
        self.bus.publish(NEW_EDIT)
        self.assertEqual(len(self.updates), count + 1)
        self.assertEqual(self.updates[-1], self.updates[-2])

    def test_detached_store_ignores_events(self):
        self.store.add(DraftPoint((-70.65, -33.45), "p"))
        self.store.detach()
        self.bus.publish(FINISH_EDIT)
        self.assertTrue(self.store.in_progress())

    def test_add_on_worker_thread_publishes_render(self):
        worker = threading.Thread(target=self.store.add, args=(DraftPoint((-70.65, -33.45), "A"),))
        worker.start()
        worker.join()

        self.assertEqual(len(self.updates), 1)
        self.assertEqual(self.updates[0]["geojson"]["features"][0]["properties"]["drawId"], "A")


if __name__ == '__main__':
    unittest.main()
