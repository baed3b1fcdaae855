from __future__ import annotations
import logging
import streamlit as st
import pandas as pd
from roster.aggregate import UNASSIGNED, filter_students
from roster.comments import CommentKind, comment_history, get_comment
from roster.errors import SnapshotError
from roster.export import classes_frame, students_frame, grades_frame, export_to_excel_bytes
from roster.pipeline import RosterState
from roster.snapshot import dumps, loads, load_snapshot, save_snapshot

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("app")

st.set_page_config(page_title="Student Management", layout="wide")
st.title("Student Management System")
# =========================

# State
# =========================
def _initial_state() -> RosterState:
    try:
        db = load_snapshot()
    except SnapshotError as e:
        logger.warning("stored snapshot ignored: %s", e)
        db = None
    state = RosterState()
    if db is not None:
        state.replace(db)
    return state

if "roster" not in st.session_state:
    st.session_state["roster"] = _initial_state()

state: RosterState = st.session_state["roster"]

def _grade_title(grade: str) -> str:
    if grade == "K":
        return "Kindergarten"
    if grade == UNASSIGNED:
        return grade
    return f"Grade {grade}"

def _comment_box(kind: CommentKind, entity_id: str, key: str):
    log = get_comment(state.database.comments, kind, entity_id)
    for stamp, text in comment_history(log):
        st.caption(f"{stamp:%Y-%m-%d %H:%M}" if stamp else "(no date)")
        st.write(text)
    with st.form(key, clear_on_submit=True):
        text = st.text_area("Add comment", value="")
        if st.form_submit_button("Save comment") and text.strip():
            state.comment(kind, entity_id, text)
            if not state.result.report.demo:
                save_snapshot(state.database)
            st.rerun()
# =========================

# Uploads
# =========================
c_up, c_imp = st.columns(2)
with c_up:
    upload = st.file_uploader("Academy workbook (.xlsx)", type=["xlsx"], accept_multiple_files=False)
with c_imp:
    imported = st.file_uploader("Import data (.json)", type=["json"], accept_multiple_files=False)

if upload is not None and st.session_state.get("last_upload") != upload.file_id:
    st.session_state["last_upload"] = upload.file_id
    result = state.upload(upload.getvalue(), save=save_snapshot)
    if result.report.demo:
        st.warning("The file could not be read. Demo mode: using sample data.")
    else:
        st.success(f"Loaded {result.stats.total_classes} classes and {result.stats.total_students} students.")

if imported is not None and st.session_state.get("last_import") != imported.file_id:
    st.session_state["last_import"] = imported.file_id
    try:
        state.replace(loads(imported.getvalue().decode("utf-8")))
        save_snapshot(state.database)
        st.success("Data imported.")
    except (SnapshotError, UnicodeDecodeError) as e:
        st.error(f"Invalid import file format: {e}")

result = state.result
db = result.database

if not db.students and not db.classes:
    st.info("Upload a workbook to get started.")
    st.stop()
# =========================

# Dashboard
# =========================
st.divider()
c1, c2, c3 = st.columns(3)
with c1:
    st.metric("Students", result.stats.total_students)
with c2:
    st.metric("Classes", result.stats.total_classes)
with c3:
    st.metric("Grades", len(result.grades_list))

st.subheader("Students per grade")
st.dataframe(grades_frame(db), width="stretch", hide_index=True)
# =========================

# Classes by grade
# =========================
st.subheader("Classes")
for grade in result.grades_list:
    bucket = result.classes_by_grade[grade]
    with st.expander(f"{_grade_title(grade)} ({len(bucket.classes)} classes, {len(bucket.students)} students)", expanded=False):
        for info in bucket.classes:
            st.markdown(f"**{info.id}** ({info.full_level_name}, {len(info.students)} students)")
            details = [x for x in [info.schedule, info.teachers, info.additional_info] if x]
            if details:
                st.caption(" | ".join(details))

class_ids = sorted(db.classes)
if class_ids:
    selected = st.selectbox("Class details", class_ids)
    info = db.classes[selected]
    members = [db.students[s].to_dict() for s in info.students if s in db.students]
    st.dataframe(pd.DataFrame(members), width="stretch", hide_index=True)
    _comment_box(CommentKind.CLASS, selected, f"class_comment_{selected}")
# =========================

# Students
# =========================
st.subheader("Students")
f1, f2 = st.columns(2)
with f1:
    q = st.text_input("Search by name", value="")
with f2:
    csel = st.selectbox("Class", ["all"] + class_ids, index=0)

found = filter_students(db, q.strip(), csel)
st.caption(f"{len(found)} students found")
view = students_frame(db)
view = view[view["Student ID"].isin({s.id for s in found})]
st.dataframe(view.head(500), width="stretch", hide_index=True)

if found:
    sid = st.selectbox("Student details", [s.id for s in found])
    st.json(db.students[sid].to_dict(), expanded=False)
    _comment_box(CommentKind.STUDENT, sid, f"student_comment_{sid}")
# =========================

# Import log
# =========================
st.divider()
st.subheader("Import log")
report = result.report
for o in report.fatal():
    st.error(o.reason)

skipped = report.skipped()
st.metric("Skipped rows/sheets", len(skipped))
if skipped:
    st.dataframe(pd.DataFrame([o.__dict__ for o in skipped]), width="stretch")

if report.schema_issues:
    st.warning("Some column headers differ from the expected template:")
    st.dataframe(pd.DataFrame([i.__dict__ for i in report.schema_issues]), width="stretch")
# =========================

# Export
# =========================
st.divider()
e1, e2 = st.columns(2)
with e1:
    st.download_button(
        "Export data (.json)",
        data=dumps(db),
        file_name="student-management-data.json",
        mime="application/json",
    )
with e2:
    st.download_button(
        "Download Excel report",
        data=export_to_excel_bytes(db),
        file_name="student-management-report.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )

with st.expander("All classes", expanded=False):
    st.dataframe(classes_frame(db), width="stretch", hide_index=True)
