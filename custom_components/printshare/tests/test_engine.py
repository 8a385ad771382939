"""
Tests for PrintShareEngine and the ShareToggleController it drives:
optimistic toggles, rollback, pending exclusivity, refresh/toggle races and
locale re-projection.
"""

from __future__ import annotations

import asyncio
import unittest
from unittest.mock import AsyncMock, MagicMock

from custom_components.printshare.errors import (
    DeviceOffline,
    FetchFailed,
    InvalidLocale,
    OperationInProgress,
    TransportError,
    UnknownDevice,
)
from custom_components.printshare.models import LogLevel, PendingOp

from .test_common import Gate, make_api, make_device, make_engine, settle


def view_of(engine, device_id):
    return next(v for v in engine.get_view_model() if v.id == device_id)


class TestEndToEnd(unittest.IsolatedAsyncioTestCase):

    async def test_refresh_toggle_and_confirm(self):
        gate = Gate()
        api = make_api([make_device("p1", name="HP", raw_status="online")], set())
        api.request_share = AsyncMock(side_effect=gate.wait)
        engine = make_engine(api)

        await engine.refresh()
        [view] = engine.get_view_model()
        self.assertEqual(view.id, "p1")
        self.assertEqual(view.display_status, "online")
        self.assertEqual(view.share_button_label, "share")
        self.assertTrue(view.share_button_enabled)

        task = asyncio.ensure_future(engine.toggle("p1"))
        await settle()
        view = view_of(engine, "p1")
        self.assertEqual(view.share_button_label, "sharing…")
        self.assertFalse(view.share_button_enabled)

        gate.release("Printer HP shared as AirPrint")
        self.assertTrue(await task)
        view = view_of(engine, "p1")
        self.assertEqual(view.share_button_label, "stop sharing")
        self.assertTrue(view.share_button_enabled)
        self.assertEqual(engine.log.snapshot()[-1].message, "Printer HP shared as AirPrint")
        api.request_share.assert_awaited_once_with("p1")

    async def test_view_listener_sees_every_transition(self):
        api = make_api([make_device("p1")], set())
        engine = make_engine(api)
        labels = []
        engine.subscribe_to_view(lambda views: labels.append(views[0].share_button_label))

        await engine.refresh()
        await engine.toggle("p1")

        self.assertEqual(labels[0], "share")
        self.assertEqual(labels[1], "sharing…")
        self.assertEqual(labels[-1], "stop sharing")


class TestToggleRejections(unittest.IsolatedAsyncioTestCase):

    async def test_unknown_device(self):
        engine = make_engine(make_api([make_device("p1")]))
        await engine.refresh()
        with self.assertRaises(UnknownDevice):
            await engine.toggle("nope")
        last = engine.log.snapshot()[-1]
        self.assertEqual(last.level, LogLevel.ERROR)
        self.assertEqual(len(engine.overlay), 0)

    async def test_toggle_before_first_refresh_is_unknown_device(self):
        engine = make_engine()
        with self.assertRaises(UnknownDevice):
            await engine.toggle("p1")

    async def test_offline_device_cannot_be_shared(self):
        api = make_api([make_device("p1", raw_status="offline")])
        engine = make_engine(api)
        await engine.refresh()
        with self.assertRaises(DeviceOffline):
            await engine.toggle("p1")
        api.request_share.assert_not_awaited()
        self.assertEqual(engine.log.snapshot()[-1].level, LogLevel.WARNING)

    async def test_offline_shared_device_can_be_unshared(self):
        api = make_api([make_device("p1", raw_status="error")], {"p1"})
        engine = make_engine(api)
        await engine.refresh()
        self.assertFalse(await engine.toggle("p1"))
        api.request_unshare.assert_awaited_once_with("p1")
        self.assertFalse(engine.directory.data.is_shared("p1"))

    async def test_pending_exclusivity(self):
        gate = Gate()
        api = make_api([make_device("p1")], set())
        api.request_share = AsyncMock(side_effect=gate.wait)
        engine = make_engine(api)
        await engine.refresh()

        first = asyncio.ensure_future(engine.toggle("p1"))
        await settle()
        directory_before = engine.directory.data
        overlay_before = dict(engine.overlay.snapshot())

        with self.assertRaises(OperationInProgress):
            await engine.toggle("p1")

        self.assertIs(engine.directory.data, directory_before)
        self.assertEqual(dict(engine.overlay.snapshot()), overlay_before)
        self.assertEqual(engine.log.snapshot()[-1].level, LogLevel.WARNING)

        gate.release("ok")
        await first
        api.request_share.assert_awaited_once()

    async def test_other_devices_are_not_blocked(self):
        gate = Gate()
        api = make_api([make_device("p1"), make_device("p2")], set())
        async def share(device_id):
            if device_id == "p1":
                return await gate()
            return "p2 shared"

        api.request_share = AsyncMock(side_effect=share)
        engine = make_engine(api)
        await engine.refresh()

        first = asyncio.ensure_future(engine.toggle("p1"))
        await settle()
        self.assertTrue(await engine.toggle("p2"))
        gate.release("p1 shared")
        self.assertTrue(await first)


class TestToggleCancellation(unittest.IsolatedAsyncioTestCase):

    async def test_cancelled_caller_does_not_strand_pending_state(self):
        gate = Gate()
        api = make_api([make_device("p1")], set())
        api.request_share = AsyncMock(side_effect=gate.wait)
        engine = make_engine(api)
        await engine.refresh()

        task = asyncio.ensure_future(engine.toggle("p1"))
        await settle()
        task.cancel()
        await settle()
        self.assertTrue(task.cancelled())

        # The backend request is still running
        self.assertTrue(engine.overlay.is_pending("p1"))
        gate.release("ok")
        await settle()

        self.assertEqual(len(engine.overlay), 0)
        view = view_of(engine, "p1")
        self.assertTrue(view.is_shared)
        self.assertTrue(view.share_button_enabled)
        self.assertEqual(engine.log.snapshot()[-1].message, "ok")

    async def test_device_usable_after_cancelled_toggle_fails(self):
        gate = Gate()
        api = make_api([make_device("p1")], set())
        api.request_share = AsyncMock(side_effect=gate.wait)
        engine = make_engine(api)
        await engine.refresh()

        task = asyncio.ensure_future(engine.toggle("p1"))
        await settle()
        task.cancel()
        await settle()
        gate.fail(TransportError("printer refused"))
        await settle()

        self.assertEqual(len(engine.overlay), 0)
        self.assertFalse(view_of(engine, "p1").is_shared)

        api.request_share = AsyncMock(return_value="ok")
        self.assertTrue(await engine.toggle("p1"))


class TestToggleRollback(unittest.IsolatedAsyncioTestCase):

    async def test_failed_share_reverts_to_idle(self):
        api = make_api([make_device("p1")], set())
        api.request_share.side_effect = TransportError("printer refused")
        engine = make_engine(api)
        await engine.refresh()

        with self.assertRaises(TransportError) as ctx:
            await engine.toggle("p1")

        self.assertEqual(ctx.exception.message, "printer refused")
        self.assertFalse(engine.directory.data.is_shared("p1"))
        self.assertIs(engine.overlay.get("p1"), PendingOp.NONE)
        view = view_of(engine, "p1")
        self.assertEqual(view.share_button_label, "share")
        self.assertTrue(view.share_button_enabled)
        last = engine.log.snapshot()[-1]
        self.assertEqual(last.level, LogLevel.ERROR)
        self.assertIn("printer refused", last.message)

    async def test_failed_unshare_reverts_to_shared(self):
        api = make_api([make_device("p1")], {"p1"})
        api.request_unshare.side_effect = TransportError("still printing")
        engine = make_engine(api)
        await engine.refresh()

        with self.assertRaises(TransportError):
            await engine.toggle("p1")

        self.assertTrue(engine.directory.data.is_shared("p1"))
        self.assertEqual(view_of(engine, "p1").share_button_label, "stop sharing")

    async def test_unexpected_backend_error_is_wrapped(self):
        api = make_api([make_device("p1")], set())
        api.request_share.side_effect = RuntimeError("socket closed")
        engine = make_engine(api)
        await engine.refresh()

        with self.assertRaises(TransportError) as ctx:
            await engine.toggle("p1")
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)
        self.assertEqual(len(engine.overlay), 0)

    async def test_successful_unshare_logs_localised_message(self):
        api = make_api([make_device("p1")], {"p1"})
        engine = make_engine(api, locale="zh")
        await engine.refresh()
        await engine.toggle("p1")
        last = engine.log.snapshot()[-1]
        self.assertEqual(last.level, LogLevel.SUCCESS)
        self.assertEqual(last.message, "已停止共享打印机 p1")


class TestRefreshDuringToggle(unittest.IsolatedAsyncioTestCase):

    async def test_refresh_does_not_clobber_pending_state(self):
        gate = Gate()
        api = make_api([make_device("p1")], set())
        api.request_share = AsyncMock(side_effect=gate.wait)
        engine = make_engine(api)
        await engine.refresh()

        toggle = asyncio.ensure_future(engine.toggle("p1"))
        await settle()
        # The backend has not applied the share yet
        await engine.refresh()

        view = view_of(engine, "p1")
        self.assertEqual(view.share_button_label, "sharing…")
        self.assertFalse(view.share_button_enabled)

        gate.release("ok")
        await toggle
        self.assertEqual(view_of(engine, "p1").share_button_label, "stop sharing")

    async def test_refresh_started_before_confirmation_keeps_share(self):
        share_gate, membership_gate = Gate(), Gate()
        api = make_api([make_device("p1")], set())
        engine = make_engine(api)
        await engine.refresh()

        api.request_share = AsyncMock(side_effect=share_gate.wait)
        api.fetch_shared_device_ids = AsyncMock(side_effect=membership_gate.wait)

        toggle = asyncio.ensure_future(engine.toggle("p1"))
        await settle()
        refresh = asyncio.ensure_future(engine.refresh())
        await settle()

        share_gate.release("ok")
        await toggle
        membership_gate.release(set())  # read before the share landed
        await refresh

        self.assertTrue(engine.directory.data.is_shared("p1"))
        self.assertEqual(view_of(engine, "p1").share_button_label, "stop sharing")

    async def test_refresh_overlapping_toggle_installs_new_inventory(self):
        share_gate, inventory_gate = Gate(), Gate()
        api = make_api([make_device("p1")], set())
        engine = make_engine(api)
        await engine.refresh()

        api.request_share = AsyncMock(side_effect=share_gate.wait)
        api.fetch_device_inventory = AsyncMock(side_effect=inventory_gate.wait)

        toggle = asyncio.ensure_future(engine.toggle("p1"))
        await settle()
        refresh = asyncio.ensure_future(engine.refresh())
        await settle()

        share_gate.release("ok")
        await toggle
        inventory_gate.release([make_device("p1"), make_device("p2")])
        await refresh

        self.assertEqual([v.id for v in engine.get_view_model()], ["p1", "p2"])
        self.assertTrue(view_of(engine, "p1").is_shared)
        self.assertFalse(view_of(engine, "p2").is_shared)
        self.assertEqual(engine.log.snapshot()[-1].message, "Found 2 printer(s), 1 shared")

    async def test_device_removed_by_refresh_while_pending(self):
        gate = Gate()
        api = make_api([make_device("p1")], set())
        api.request_share = AsyncMock(side_effect=gate.wait)
        engine = make_engine(api)
        await engine.refresh()

        toggle = asyncio.ensure_future(engine.toggle("p1"))
        await settle()
        api.fetch_device_inventory.return_value = []
        await engine.refresh()
        self.assertEqual(engine.get_view_model(), [])

        gate.release("ok")
        await toggle
        self.assertEqual(len(engine.overlay), 0)


class TestLocale(unittest.IsolatedAsyncioTestCase):

    async def test_locale_change_reprojects_without_touching_stores(self):
        gate = Gate()
        api = make_api([make_device("p1"), make_device("p2", raw_status="offline")], set())
        api.request_share = AsyncMock(side_effect=gate.wait)
        engine = make_engine(api)
        await engine.refresh()
        toggle = asyncio.ensure_future(engine.toggle("p1"))
        await settle()

        directory_before = engine.directory.data
        overlay_before = dict(engine.overlay.snapshot())
        views = []
        engine.subscribe_to_view(views.append)

        self.assertTrue(await engine.set_locale("zh"))

        self.assertIs(engine.directory.data, directory_before)
        self.assertEqual(dict(engine.overlay.snapshot()), overlay_before)
        p1, p2 = views[-1]
        self.assertEqual(p1.share_button_label, "共享中…")
        self.assertEqual(p2.display_status, "离线")
        api.notify_locale_change.assert_awaited_once_with("zh")

        gate.release("ok")
        await toggle
        self.assertEqual(view_of(engine, "p1").share_button_label, "停止共享")

    async def test_same_locale_is_noop(self):
        api = make_api()
        engine = make_engine(api)
        listener = MagicMock()
        engine.subscribe_to_locale(listener)
        self.assertFalse(await engine.set_locale("en"))
        listener.assert_not_called()
        api.notify_locale_change.assert_not_awaited()

    async def test_invalid_locale_keeps_previous(self):
        engine = make_engine(locale="zh")
        with self.assertRaises(InvalidLocale):
            await engine.set_locale("   ")
        self.assertEqual(engine.locale.current(), "zh")
        self.assertEqual(engine.log.snapshot()[-1].level, LogLevel.WARNING)

    async def test_backend_failure_does_not_revert_locale(self):
        api = make_api()
        api.notify_locale_change.side_effect = TransportError("unsupported")
        engine = make_engine(api)

        self.assertTrue(await engine.set_locale("zh"))

        self.assertEqual(engine.locale.current(), "zh")
        last = engine.log.snapshot()[-1]
        self.assertEqual(last.level, LogLevel.WARNING)
        self.assertIn("unsupported", last.message)


class TestEngineServices(unittest.IsolatedAsyncioTestCase):

    async def test_clear_log(self):
        engine = make_engine(make_api([make_device("p1")]))
        await engine.refresh()
        listener = MagicMock()
        engine.subscribe_to_log(listener)
        engine.clear_log()
        self.assertEqual(engine.log.snapshot(), [])
        listener.assert_called_once_with([])

    async def test_subscribe_to_directory(self):
        engine = make_engine(make_api([make_device("p1")]))
        listener = MagicMock()
        remove = engine.subscribe_to_directory(listener)
        data = await engine.refresh()
        listener.assert_called_once_with(data)
        remove()

    async def test_last_error_and_availability(self):
        api = make_api([make_device("p1")])
        engine = make_engine(api)
        self.assertFalse(engine.available)
        await engine.refresh()
        api.fetch_device_inventory.side_effect = TransportError("gone")
        with self.assertRaises(FetchFailed):
            await engine.refresh()
        self.assertTrue(engine.available)
        self.assertEqual(engine.last_error, "gone")
        self.assertEqual(len(engine.get_view_model()), 1)

    async def test_dispose_detaches_from_shared_services(self):
        engine = make_engine()
        views = MagicMock()
        engine.subscribe_to_view(views)
        engine.dispose()
        engine.locale.set("zh")
        views.assert_not_called()
