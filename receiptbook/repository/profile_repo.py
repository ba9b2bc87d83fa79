from sqlite3 import Connection

from ..models import BusinessProfile


def _params(p: BusinessProfile) -> tuple:
    return (
        p.name,
        p.phone,
        p.address or None,
        p.cac_number or None,
        p.logo_uri or None,
        p.website_uri or None,
        p.custom_footer or None,
    )


def get_first(conn: Connection):
    return conn.execute(
        "SELECT id, name, phone, address, cacNumber, logoUri, websiteUri, customFooter "
        "FROM business_profile ORDER BY id LIMIT 1"
    ).fetchone()


def get_first_id(conn: Connection):
    row = conn.execute("SELECT id FROM business_profile ORDER BY id LIMIT 1").fetchone()
    return int(row["id"]) if row else None


def insert_profile(conn: Connection, p: BusinessProfile) -> int:
    cur = conn.execute(
        "INSERT INTO business_profile(name, phone, address, cacNumber, logoUri, websiteUri, customFooter) "
        "VALUES(?,?,?,?,?,?,?)",
        _params(p),
    )
    return int(cur.lastrowid)


def update_profile(conn: Connection, profile_id: int, p: BusinessProfile) -> None:
    conn.execute(
        "UPDATE business_profile SET name=?, phone=?, address=?, cacNumber=?, logoUri=?, "
        "websiteUri=?, customFooter=? WHERE id=?",
        _params(p) + (profile_id,),
    )


def count_all(conn: Connection) -> int:
    return int(conn.execute("SELECT COUNT(1) AS c FROM business_profile").fetchone()["c"])
