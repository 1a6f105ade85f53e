# src/db/crud.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple

from db import models
from db.database import connect

CHANNELS = ("a4", "thermal")


def _to_datetime(val) -> datetime:
    if isinstance(val, datetime):
        return val
    return datetime.fromisoformat(str(val))


# ---------------------------
# Paired printers
# ---------------------------


async def remember_printer(
    vendor_id: int, product_id: int, description: str, when: datetime
) -> None:
    """Record (or refresh) a printer the user paired with."""
    async with connect() as conn:
        await conn.execute(
            """
            INSERT INTO paired_printers(vendor_id, product_id, description, paired_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(vendor_id, product_id)
            DO UPDATE SET description = excluded.description,
                          paired_at = excluded.paired_at;
            """,
            (vendor_id, product_id, description or "", when.isoformat()),
        )
        await conn.commit()


async def list_paired_printers() -> List[models.PairedPrinter]:
    """Most recently paired first."""
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT vendor_id, product_id, description, paired_at
            FROM paired_printers
            ORDER BY paired_at DESC;
            """
        )
        rows = await cur.fetchall()
        await cur.close()
    return [
        models.PairedPrinter(
            vendor_id=row[0],
            product_id=row[1],
            description=row[2],
            paired_at=_to_datetime(row[3]),
        )
        for row in rows
    ]


async def paired_device_ids() -> List[Tuple[int, int]]:
    """(vendor_id, product_id) pairs, most recently paired first."""
    return [(p.vendor_id, p.product_id) for p in await list_paired_printers()]


async def forget_printer(vendor_id: int, product_id: int) -> bool:
    """Return True if a row was deleted."""
    async with connect() as conn:
        cur = await conn.execute(
            "DELETE FROM paired_printers WHERE vendor_id = ? AND product_id = ?;",
            (vendor_id, product_id),
        )
        deleted = cur.rowcount
        await cur.close()
        await conn.commit()
    return deleted > 0


# ---------------------------
# Receipt journal
# ---------------------------


async def record_print(
    order_id: int, order_number: str, channel: str, when: datetime
) -> int:
    """Journal a receipt output. Returns the journal entry number."""
    if channel not in CHANNELS:
        raise ValueError(f"Unknown print channel: {channel}")
    async with connect() as conn:
        cur = await conn.execute(
            """
            INSERT INTO printed_receipts(order_id, order_number, channel, printed_at)
            VALUES (?, ?, ?, ?);
            """,
            (order_id, order_number, channel, when.isoformat()),
        )
        pno = cur.lastrowid
        await cur.close()
        await conn.commit()
    return int(pno)


def _row_to_printed(row) -> models.PrintedReceipt:
    return models.PrintedReceipt(
        pno=row[0],
        order_id=row[1],
        order_number=row[2],
        channel=row[3],
        printed_at=_to_datetime(row[4]),
    )


async def last_printed(channel: Optional[str] = None) -> Optional[models.PrintedReceipt]:
    """The latest journal entry, optionally for one channel only."""
    async with connect() as conn:
        if channel:
            cur = await conn.execute(
                """
                SELECT pno, order_id, order_number, channel, printed_at
                FROM printed_receipts
                WHERE channel = ?
                ORDER BY pno DESC
                LIMIT 1;
                """,
                (channel,),
            )
        else:
            cur = await conn.execute(
                """
                SELECT pno, order_id, order_number, channel, printed_at
                FROM printed_receipts
                ORDER BY pno DESC
                LIMIT 1;
                """
            )
        row = await cur.fetchone()
        await cur.close()
    return _row_to_printed(row) if row else None


async def list_prints_for_order(order_id: int) -> List[models.PrintedReceipt]:
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT pno, order_id, order_number, channel, printed_at
            FROM printed_receipts
            WHERE order_id = ?
            ORDER BY pno;
            """,
            (order_id,),
        )
        rows = await cur.fetchall()
        await cur.close()
    return [_row_to_printed(row) for row in rows]
