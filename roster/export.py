from __future__ import annotations
import pandas as pd
from io import BytesIO
from .aggregate import UNASSIGNED, build_views, class_sort_key, grade_sort_key, student_sort_key
from .model import Database, STUDENT_DETAIL_FIELDS
from .utils import try_parse_date

CLASS_COLUMNS = ["Class ID", "Grade", "Level", "Level name", "Class", "Schedule", "Teachers", "Additional info", "Students", "Comment"]
STUDENT_DETAIL_LABELS = {
    "consent": "Consent",
    "hold": "Hold",
    "feedback1": "Feedback 1-5",
    "feedback2": "Feedback 7-11",
    "phone_number": "Phone number",
    "email": "Email",
    "start_date": "Start date",
    "other_details": "Other details",
    "consultations": "Consultations",
}


def classes_frame(db: Database) -> pd.DataFrame:
    rows = []
    for c in sorted(db.classes.values(), key=lambda c: (grade_sort_key(c.grade), class_sort_key(c))):
        rows.append({
            "Class ID": c.id,
            "Grade": c.grade,
            "Level": c.level,
            "Level name": c.full_level_name,
            "Class": c.name,
            "Schedule": c.schedule,
            "Teachers": c.teachers,
            "Additional info": c.additional_info,
            "Students": len(c.students),
            "Comment": db.comments.classes.get(c.id, ""),
        })
    return pd.DataFrame(rows, columns=CLASS_COLUMNS)


def _detail(value):
    # date cells print as YYYY-MM-DD, everything else as-is
    if value is None:
        return ""
    if hasattr(value, "year"):
        return try_parse_date(value) or str(value)
    return value


def students_frame(db: Database) -> pd.DataFrame:
    rows = []
    for s in sorted(db.students.values(), key=lambda s: (grade_sort_key(s.grade or UNASSIGNED), student_sort_key(s))):
        row = {
            "Student ID": s.id,
            "English name": s.english_name,
            "Korean name": s.korean_name,
            "Grade": s.grade,
            "Classes": "; ".join(s.classes),
            "Notes": s.notes,
        }
        for f in STUDENT_DETAIL_FIELDS:
            row[STUDENT_DETAIL_LABELS[f]] = _detail(getattr(s, f))
        row["Comment"] = db.comments.students.get(s.id, "")
        rows.append(row)
    columns = ["Student ID", "English name", "Korean name", "Grade", "Classes", "Notes",
               *STUDENT_DETAIL_LABELS.values(), "Comment"]
    return pd.DataFrame(rows, columns=columns)


def grades_frame(db: Database) -> pd.DataFrame:
    # both counts: bucket membership (grade union) and the student's own grade
    views = build_views(db)
    rows = []
    for g in views.grades_list:
        bucket = views.by_grade[g]
        rows.append({
            "Grade": g,
            "Classes": len(bucket.classes),
            "Students (listed)": len(bucket.students),
            "Students (grade field)": views.stats.students_per_grade.get(g, 0),
        })
    return pd.DataFrame(rows, columns=["Grade", "Classes", "Students (listed)", "Students (grade field)"])


def export_to_excel_bytes(db: Database) -> bytes:
    classes_df = classes_frame(db)
    students_df = students_frame(db)
    grades_df = grades_frame(db)

    bio = BytesIO()
    with pd.ExcelWriter(bio, engine="xlsxwriter") as writer:
        grades_df.to_excel(writer, index=False, sheet_name="Grades")
        classes_df.to_excel(writer, index=False, sheet_name="Classes")
        students_df.to_excel(writer, index=False, sheet_name="Students")

        wb = writer.book
        fmt_header = wb.add_format({"bold": True, "bg_color": "#F2F2F2", "border": 1, "valign": "vcenter"})
        fmt_wrap = wb.add_format({"text_wrap": True, "valign": "top"})

        def format_df_sheet(sheet_name: str, df: pd.DataFrame, default_width: int = 14, max_width: int = 50):
            ws = writer.sheets.get(sheet_name)
            if ws is None:
                return
            ws.freeze_panes(1, 0)
            ws.autofilter(0, 0, max(1, len(df)), max(0, len(df.columns) - 1))
            for col, name in enumerate(df.columns):
                ws.write(0, col, name, fmt_header)
                w = max(10, min(max_width, int(len(str(name)) * 1.2) + 6))
                ws.set_column(col, col, max(default_width, w), fmt_wrap)

        format_df_sheet("Grades", grades_df, default_width=12, max_width=24)
        format_df_sheet("Classes", classes_df, default_width=16, max_width=40)
        format_df_sheet("Students", students_df, default_width=16, max_width=50)

    return bio.getvalue()
