"""
Exportación del mapa de asientos a Excel.

Hojas:
    - Mapa: una celda por asiento, coloreada por categoría, con vínculo a su
      fila en "Asignaciones".
    - Asignaciones: listado plano de las filas del evento.
"""
import io
from typing import Dict, List

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from app.models.assignment import Assignment, SLOT_SENTINELS
from app.utils.seat_layout import ROWS, parse_seat_id, row_sections

CATEGORY_FILL = {
    "autoridad": "4F46E5",
    "docente": "0EA5E9",
    "invitado": "10B981",
    "estudiante": "F97316",
    "bloqueado": "312E81",
}
CATEGORY_TEXT = {
    "autoridad": "FFFFFF",
    "docente": "0B1220",
    "invitado": "0B1220",
    "estudiante": "0B1220",
    "bloqueado": "FFFFFF",
}
EMPTY_FILL = "1F314D"
EMPTY_TEXT = "E2E8F0"
SLOT_FILL = "E2E8F0"

THIN = Side(style="thin", color="0B1220")
BORDER = Border(top=THIN, left=THIN, bottom=THIN, right=THIN)
HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill("solid", fgColor="0B1220")


def short_name(value: str) -> str:
    value = (value or "").strip()
    if len(value) <= 20:
        return value
    return f"{value[:17]}..."


def _write_assignments_sheet(ws, assignments: List[Assignment]) -> Dict[str, int]:
    headers = ["Seat ID", "Nombre Invitado", "Categoría", "Fila", "Sección", "Número", "Asignado"]
    ws.append(headers)
    for col in range(1, len(headers) + 1):
        cell = ws.cell(row=1, column=col)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center")

    row_by_seat = {}
    for a in assignments:
        info = parse_seat_id(a.seat_id) or {}
        ws.append(
            [
                a.seat_id,
                a.nombre_invitado,
                a.categoria,
                info.get("label", ""),
                info.get("section_label", ""),
                info.get("numero", ""),
                a.assigned_at.strftime("%Y-%m-%d %H:%M") if a.assigned_at else "",
            ]
        )
        row_by_seat[a.seat_id] = ws.max_row
        fill = CATEGORY_FILL.get(a.categoria)
        if fill:
            ws.cell(row=ws.max_row, column=3).fill = PatternFill("solid", fgColor=fill)
            ws.cell(row=ws.max_row, column=3).font = Font(color=CATEGORY_TEXT[a.categoria])

    widths = [12, 34, 14, 8, 12, 9, 18]
    for i, width in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(i)].width = width
    ws.freeze_panes = "A2"
    return row_by_seat


def _style_seat(cell, assignment) -> None:
    cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
    cell.border = BORDER
    if assignment is None:
        cell.fill = PatternFill("solid", fgColor=EMPTY_FILL)
        cell.font = Font(bold=True, size=11, color=EMPTY_TEXT)
        return
    is_slot = assignment.registro_id is None and assignment.nombre_invitado in SLOT_SENTINELS
    fill = SLOT_FILL if is_slot else CATEGORY_FILL.get(assignment.categoria, EMPTY_FILL)
    color = CATEGORY_TEXT.get(assignment.categoria, EMPTY_TEXT)
    cell.fill = PatternFill("solid", fgColor=fill)
    cell.font = Font(bold=True, size=11, color="0B1220" if is_slot else color, underline="single")


def _write_map_sheet(ws, by_seat: Dict[str, Assignment], row_by_seat: Dict[str, int]) -> None:
    """
    Dibuja cada fila del auditorio: etiqueta, asientos de la sección izquierda,
    un pasillo y la sección derecha.
    """
    max_left = max(
        (count for row in ROWS for section, count in row_sections(row) if section in ("L", "WL", "C")),
        default=0,
    )
    excel_row = 2
    for row in ROWS:
        label_cell = ws.cell(row=excel_row, column=1, value=row["label"])
        label_cell.font = Font(bold=True, size=12, color="94A3B8")
        label_cell.alignment = Alignment(horizontal="center", vertical="center")

        sections = row_sections(row)
        for index, (section, count) in enumerate(sections):
            if index == 0:
                # alinear la primera sección contra el pasillo central
                start_col = 2 + (max_left - count)
            else:
                start_col = 2 + max_left + 1
            numbers = range(count, 0, -1) if index == 0 and len(sections) > 1 else range(1, count + 1)
            for offset, number in enumerate(numbers):
                seat_id = f"{row['id']}-{section}-{number}"
                cell = ws.cell(row=excel_row, column=start_col + offset, value=number)
                assignment = by_seat.get(seat_id)
                _style_seat(cell, assignment)
                target_row = row_by_seat.get(seat_id)
                if assignment is not None and target_row:
                    cell.hyperlink = f"#'Asignaciones'!B{target_row}"
        excel_row += 1

    ws.column_dimensions["A"].width = 6
    for col in range(2, 2 + 2 * max_left + 2):
        ws.column_dimensions[get_column_letter(col)].width = 4.5

    legend_row = excel_row + 1
    ws.cell(row=legend_row, column=1, value="Leyenda").font = Font(bold=True)
    for i, (categoria, fill) in enumerate(CATEGORY_FILL.items()):
        cell = ws.cell(row=legend_row + 1 + i, column=2, value=categoria.capitalize())
        cell.fill = PatternFill("solid", fgColor=fill)
        cell.font = Font(color=CATEGORY_TEXT[categoria])
        ws.merge_cells(
            start_row=legend_row + 1 + i, start_column=2, end_row=legend_row + 1 + i, end_column=5
        )


def build_export_workbook(template_name: str, assignments: List[Assignment]) -> bytes:
    wb = Workbook()
    map_ws = wb.active
    map_ws.title = "Mapa"
    list_ws = wb.create_sheet("Asignaciones")

    title = map_ws.cell(row=1, column=1, value=f"Mapa de asientos · {template_name}")
    title.font = Font(bold=True, size=14)

    row_by_seat = _write_assignments_sheet(list_ws, assignments)
    _write_map_sheet(map_ws, {a.seat_id: a for a in assignments}, row_by_seat)

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
