"""
Lectura de nóminas de invitados (.csv o .xlsx).

Columnas reconocidas (sin distinguir mayúsculas ni acentos): nombre,
correo/email, categoria, departamento.
"""
import csv
import io
import re
import unicodedata
from typing import Dict, List

import openpyxl

from app.crud.registro import normalize_name
from app.enums.seat_category import REGISTRO_CATEGORIES

VALID_CATEGORIES = {c.value for c in REGISTRO_CATEGORIES}
DEFAULT_CATEGORY = "docente"
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

FIELD_ALIASES = {
    "nombre": ["nombre"],
    "correo": ["correo", "email"],
    "categoria": ["categoria"],
    "departamento": ["departamento"],
}


class InvitationFileError(ValueError):
    pass


def _norm_key(key) -> str:
    if key is None:
        return ""
    # remover acentos
    nk = unicodedata.normalize("NFKD", str(key)).encode("ascii", "ignore").decode("ascii")
    nk = re.sub(r"[^0-9a-zA-Z]+", "_", nk).strip("_").lower()
    return nk


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _cell_str(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _read_field(row: Dict[str, object], field: str) -> str:
    for key in FIELD_ALIASES[field]:
        value = _cell_str(row.get(key))
        if value:
            return value
    return ""


def read_rows(content: bytes, filename: str) -> List[Dict[str, object]]:
    """Devuelve las filas del primer hoja/archivo con claves normalizadas"""
    name = (filename or "").lower()
    rows = []
    if name.endswith(".xlsx"):
        try:
            wb = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
        except Exception as e:
            raise InvitationFileError(f"No se pudo leer el archivo Excel: {e}")
        ws = wb.worksheets[0]
        iterator = ws.iter_rows(values_only=True)
        header_row = next(iterator, None)
        if header_row is None:
            return []
        headers = [_norm_key(h) for h in header_row]
        for values in iterator:
            if values is None or all(v is None or _cell_str(v) == "" for v in values):
                continue
            rows.append({headers[i]: values[i] for i in range(min(len(headers), len(values)))})
        wb.close()
    elif name.endswith(".csv"):
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError:
            text = content.decode("latin-1")
        reader = csv.DictReader(io.StringIO(text))
        for r in reader:
            rows.append({_norm_key(k): v for k, v in r.items() if k})
    else:
        raise InvitationFileError("Formato no soportado. Usa .xlsx o .csv")
    return rows


def parse_invitations_file(content: bytes, filename: str) -> dict:
    """
    Valida y normaliza la nómina.

    Los correos repetidos dentro del archivo se colapsan: queda la última fila
    y cada repetición suma uno a duplicates_in_file.
    """
    raw_rows = read_rows(content, filename)
    errors = []
    by_email: Dict[str, dict] = {}
    duplicates = 0

    for idx, row in enumerate(raw_rows):
        line = idx + 2  # la fila 1 es el encabezado
        nombre = normalize_name(_read_field(row, "nombre"))
        correo = normalize_email(_read_field(row, "correo"))
        categoria = (_read_field(row, "categoria") or DEFAULT_CATEGORY).lower()
        departamento = _read_field(row, "departamento")

        if not nombre:
            errors.append({"row": line, "message": "Nombre requerido"})
            continue
        if not correo or not EMAIL_RE.match(correo):
            errors.append({"row": line, "message": "Correo inválido"})
            continue
        if categoria not in VALID_CATEGORIES:
            errors.append({"row": line, "message": "Categoría inválida"})
            continue

        if correo in by_email:
            duplicates += 1
            # conservar el orden de la última aparición
            del by_email[correo]
        by_email[correo] = {
            "nombre": nombre,
            "correo": correo,
            "categoria": categoria,
            "departamento": departamento or None,
        }

    valid_rows = list(by_email.values())
    return {
        "total": len(raw_rows),
        "valid": len(valid_rows),
        "invalid": len(errors),
        "duplicates_in_file": duplicates,
        "rows": valid_rows,
        "errors": errors,
    }
