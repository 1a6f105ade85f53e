import os
import sys
import tempfile
import unittest
from contextlib import asynccontextmanager
from datetime import datetime, timedelta

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from db import crud  # noqa: E402
from db import database as db_database  # noqa: E402


class CrudTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        # Point the store to a temporary file and force re-initialization
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.temp_dir.name, "nested", "test.sqlite")
        self._orig_path = db_database.DB_PATH
        db_database.configure(self.db_path)

    async def asyncSetUp(self):
        # Touch initialization by opening a connection
        async with db_database.connect() as conn:
            cur = await conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table';"
            )
            self.tables = {row[0] for row in await cur.fetchall()}
            await cur.close()

    def tearDown(self):
        db_database.configure(self._orig_path)
        self.temp_dir.cleanup()

    # ---------- Schema ----------

    async def test_schema_created_in_missing_directory(self):
        self.assertTrue(os.path.exists(self.db_path))
        self.assertIn("paired_printers", self.tables)
        self.assertIn("printed_receipts", self.tables)

    # ---------- Paired printers ----------

    async def test_remember_and_list_printers(self):
        t0 = datetime(2025, 11, 1, 12, 0, 0)
        await crud.remember_printer(0x0416, 0x5011, "POS58", t0)
        await crud.remember_printer(0x1A86, 0x7584, "CH340", t0 + timedelta(hours=1))

        printers = await crud.list_paired_printers()
        self.assertEqual(len(printers), 2)
        # most recent first
        self.assertEqual(printers[0].vendor_id, 0x1A86)
        self.assertEqual(printers[0].paired_at, t0 + timedelta(hours=1))
        self.assertEqual(
            await crud.paired_device_ids(), [(0x1A86, 0x7584), (0x0416, 0x5011)]
        )

    async def test_remember_printer_twice_refreshes_row(self):
        t0 = datetime(2025, 11, 1, 12, 0, 0)
        await crud.remember_printer(0x0416, 0x5011, "old", t0)
        await crud.remember_printer(0x0416, 0x5011, "POS58", t0 + timedelta(days=1))

        printers = await crud.list_paired_printers()
        self.assertEqual(len(printers), 1)
        self.assertEqual(printers[0].description, "POS58")
        self.assertEqual(printers[0].paired_at, t0 + timedelta(days=1))

    async def test_forget_printer(self):
        await crud.remember_printer(0x0416, 0x5011, "", datetime(2025, 11, 1))
        self.assertTrue(await crud.forget_printer(0x0416, 0x5011))
        self.assertFalse(await crud.forget_printer(0x0416, 0x5011))
        self.assertEqual(await crud.paired_device_ids(), [])

    # ---------- Receipt journal ----------

    async def test_record_and_query_prints(self):
        t0 = datetime(2025, 11, 2, 9, 30, 0)
        p1 = await crud.record_print(7, "ORD-7", "a4", t0)
        p2 = await crud.record_print(7, "ORD-7", "thermal", t0 + timedelta(minutes=1))
        p3 = await crud.record_print(8, "ORD-8", "a4", t0 + timedelta(minutes=2))
        self.assertLess(p1, p2)
        self.assertLess(p2, p3)

        last = await crud.last_printed()
        self.assertEqual(last.pno, p3)
        self.assertEqual(last.order_number, "ORD-8")

        last_thermal = await crud.last_printed("thermal")
        self.assertEqual(last_thermal.pno, p2)
        self.assertEqual(last_thermal.printed_at, t0 + timedelta(minutes=1))

        prints = await crud.list_prints_for_order(7)
        self.assertEqual([p.channel for p in prints], ["a4", "thermal"])
        self.assertEqual(await crud.list_prints_for_order(999), [])

    async def test_last_printed_empty(self):
        self.assertIsNone(await crud.last_printed())
        self.assertIsNone(await crud.last_printed("a4"))

    async def test_record_print_rejects_unknown_channel(self):
        with self.assertRaises(ValueError):
            await crud.record_print(1, "ORD-1", "fax", datetime(2025, 11, 1))
        with self.assertRaises(ValueError):
            await crud.record_print(1, "ORD-1", "preview", datetime(2025, 11, 1))
        self.assertIsNone(await crud.last_printed())

    async def test_record_print_uses_connect(self):
        # Patch connect to observe the statement without touching the file
        seen = []

        class FakeCursor:
            lastrowid = 42

            async def close(self):
                return None

        class FakeConn:
            async def execute(self, sql, params=()):
                seen.append(params)
                return FakeCursor()

            async def commit(self):
                return None

        @asynccontextmanager
        async def fake_connect():
            yield FakeConn()

        orig_connect = crud.connect
        try:
            crud.connect = fake_connect  # type: ignore
            pno = await crud.record_print(3, "ORD-3", "a4", datetime(2025, 1, 1))
        finally:
            crud.connect = orig_connect  # restore
        self.assertEqual(pno, 42)
        self.assertEqual(seen[0][:3], (3, "ORD-3", "a4"))


if __name__ == "__main__":
    unittest.main()
