"""
Distribución física del auditorio.

Cada fila define cuántos asientos tiene a la izquierda, derecha o al centro. Los
identificadores de asiento tienen la forma FILA-SECCION-NUMERO, por ejemplo
"R8-L-3" (fila A, izquierda, asiento 3).
"""
from typing import List, Optional

ROWS = [
    # Nivel superior: alas y flancos de cabina
    {"id": "W", "label": "W", "left": 14, "right": 14, "type": "wing"},
    {"id": "CB", "label": "K", "left": 9, "right": 9, "type": "cabin-flank"},
    # Sección principal, de J a A
    {"id": "R17", "label": "J", "left": 17, "right": 17},
    {"id": "R16", "label": "I", "left": 17, "right": 17},
    {"id": "R15", "label": "H", "left": 16, "right": 16},
    {"id": "R14", "label": "G", "left": 16, "right": 16},
    {"id": "R13", "label": "F", "left": 15, "right": 15},
    {"id": "R12", "label": "E", "left": 14, "right": 14},
    {"id": "R11", "label": "D", "left": 14, "right": 14, "doors": True},
    {"id": "R10", "label": "C", "left": 13, "right": 13},
    {"id": "R9", "label": "B", "left": 13, "right": 13},
    {"id": "R8", "label": "A", "left": 10, "right": 10},
    # Fila central inferior
    {"id": "C1", "label": "C1", "center": 9, "type": "center"},
]

SECTION_LABELS = {
    "L": "Izquierda",
    "R": "Derecha",
    "C": "Centro",
    "WL": "Ala Izq",
    "WR": "Ala Der",
}

_ROWS_BY_ID = {row["id"]: row for row in ROWS}


def row_sections(row: dict) -> List[tuple]:
    """Devuelve [(seccion, cantidad)] de una fila en orden de izquierda a derecha."""
    row_type = row.get("type")
    if row_type == "center":
        return [("C", row.get("center", 0))]
    if row_type == "wing":
        return [("WL", row.get("left", 0)), ("WR", row.get("right", 0))]
    return [("L", row.get("left", 0)), ("R", row.get("right", 0))]


def generate_all_seat_ids() -> List[str]:
    ids = []
    for row in ROWS:
        for section, count in row_sections(row):
            for i in range(1, count + 1):
                ids.append(f"{row['id']}-{section}-{i}")
    return ids


ALL_SEAT_IDS = frozenset(generate_all_seat_ids())


def is_valid_seat_id(seat_id: str) -> bool:
    return seat_id in ALL_SEAT_IDS


def parse_seat_id(seat_id: str) -> Optional[dict]:
    parts = seat_id.split("-")
    if len(parts) != 3 or not parts[2].isdigit():
        return None
    row_id, section, num = parts
    row = _ROWS_BY_ID.get(row_id)
    label = row["label"] if row else row_id
    section_label = SECTION_LABELS.get(section, section)
    return {
        "row_id": row_id,
        "section": section,
        "numero": int(num),
        "label": label,
        "section_label": section_label,
        "display": f"Fila {label} · {section_label} · Asiento {num}",
    }
