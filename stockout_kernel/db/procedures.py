"""
Module: stockout_kernel.db.procedures
Responsibility: Installing, removing and detecting the PostgreSQL server-side
    inventory procedures.  decrease_inventory_quantity() is the atomic
    decrement capability preferred by the inventory mutator.
Architecture position: Kernel > DB.  May import from db/ only.  MUST NOT
    import from models/, services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - The decrement is a single UPDATE guarded by the available quantity, so
      concurrent callers are serialized by the row lock PostgreSQL takes.

Failure modes:
    - The procedure raises (SQLSTATE P0002) when the row does not exist and
      (SQLSTATE P0003) when the decrement would exceed the available quantity.
    - A database without the procedure reports "function does not exist"
      (SQLSTATE 42883) or, on SQLite, "no such function"; is_missing_function()
      recognises both.
"""

from sqlalchemy import text
from sqlalchemy.engine import Engine

DECREMENT_PROCEDURE = "decrease_inventory_quantity"

# SQLSTATE raised by PostgreSQL when a function signature is unknown
UNDEFINED_FUNCTION_SQLSTATE = "42883"

INSUFFICIENT_STOCK_SQLSTATE = "P0003"

_INSTALL_SQL = f"""
CREATE OR REPLACE FUNCTION {DECREMENT_PROCEDURE}(
    p_inventory_id VARCHAR,
    p_quantity NUMERIC
) RETURNS NUMERIC AS $$
DECLARE
    v_remaining NUMERIC;
BEGIN
    UPDATE inventory
       SET quantity_on_hand = quantity_on_hand - p_quantity,
           updated_at = NOW()
     WHERE id = p_inventory_id
       AND quantity_on_hand - quantity_reserved >= p_quantity
    RETURNING quantity_on_hand INTO v_remaining;

    IF NOT FOUND THEN
        IF NOT EXISTS (SELECT 1 FROM inventory WHERE id = p_inventory_id) THEN
            RAISE EXCEPTION 'inventory % not found', p_inventory_id
                USING ERRCODE = 'P0002';
        END IF;
        RAISE EXCEPTION 'insufficient stock on inventory %', p_inventory_id
            USING ERRCODE = '{INSUFFICIENT_STOCK_SQLSTATE}';
    END IF;

    RETURN v_remaining;
END;
$$ LANGUAGE plpgsql;
"""

_DROP_SQL = f"DROP FUNCTION IF EXISTS {DECREMENT_PROCEDURE}(VARCHAR, NUMERIC);"


def install_inventory_procedures(engine: Engine) -> None:
    """Create (or replace) the server-side inventory procedures."""
    with engine.begin() as conn:
        conn.execute(text(_INSTALL_SQL))


def uninstall_inventory_procedures(engine: Engine) -> None:
    """Drop the server-side inventory procedures if present."""
    with engine.begin() as conn:
        conn.execute(text(_DROP_SQL))


def procedures_installed(engine: Engine) -> bool:
    """Check whether decrease_inventory_quantity exists (PostgreSQL only)."""
    if engine.dialect.name != "postgresql":
        return False
    with engine.connect() as conn:
        result = conn.execute(
            text("SELECT COUNT(*) FROM pg_proc WHERE proname = :name"),
            {"name": DECREMENT_PROCEDURE},
        )
        return result.scalar() > 0


def sqlstate_of(exc: BaseException) -> str | None:
    """SQLSTATE of a DBAPI error wrapped by SQLAlchemy, when the driver exposes one."""
    orig = getattr(exc, "orig", None)
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def is_missing_function(exc: BaseException) -> bool:
    """
    True when the error says the called database function does not exist.

    Checks the SQLSTATE first, then the driver message, because SQLite and
    some PostgreSQL proxies only report the condition in text.
    """
    if sqlstate_of(exc) == UNDEFINED_FUNCTION_SQLSTATE:
        return True
    message = str(getattr(exc, "orig", exc)).lower()
    if "no such function" in message:
        return True
    return "function" in message and (
        "does not exist" in message
        or "could not find" in message
        or "not found" in message
    )
