import sys
import datetime
import logging

from PySide6.QtWidgets import (
    QApplication, QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QTabWidget, QCalendarWidget, QCheckBox, QPushButton, QLabel,
    QSpinBox, QListWidget, QListWidgetItem, QMessageBox, QDateEdit,
    QComboBox, QGroupBox, QLineEdit, QTimeEdit, QFileDialog, QInputDialog, QPlainTextEdit
)
from PySide6.QtGui import QTextCharFormat, QBrush, QColor
from PySide6.QtCore import Qt, QDate, QTime, QTimer, QThread, Signal, QObject

from hahalab.calendar_logic import (
    MODE_SINGLE, MODE_MULTI, MODE_RECURRING, FREQ_WEEKLY, FREQ_MONTHLY,
    add_minutes, find_overlapping_pairs,
)
from hahalab.children import filter_children, group_by_chosung, calculate_age, format_next_class, default_title
from hahalab.cloud import CloudStore
from hahalab.config import load_cloud_config
from hahalab.contents import (
    SORT_LATEST, SORT_OLDEST, SORT_NAME_ASC, SORT_NAME_DESC, add_tag, remove_tag, filter_contents, count_by_category,
)
from hahalab.data import Database
from hahalab.errors import PlannerError
from hahalab.export_utils import export_schedules_csv, export_child_report, format_schedule_line
from hahalab.models import (
    CalendarSettings, Child, ContentItem, Guardian, ScheduleTemplate, CATEGORIES, CHILD_REGULAR, CHILD_CONSULTATION,
)
from hahalab.notifications import POLL_INTERVAL_SECONDS, MAX_POLL_INTERVAL_SECONDS
from hahalab.planner import SchedulePlanner


# === UI Text Constants ===
WINDOW_TITLE = "HahaLab"
TAB_SCHEDULE = "일정"
TAB_CHILDREN = "아동"
TAB_CONTENTS = "콘텐츠"
TAB_SETTINGS = "설정"
MODE_LABELS = [(MODE_SINGLE, "단일"), (MODE_MULTI, "다중선택"), (MODE_RECURRING, "반복")]
FREQ_LABELS = [(FREQ_WEEKLY, "매주"), (FREQ_MONTHLY, "매월")]
TYPE_LABELS = [("class", "수업"), ("counseling", "상담"), ("meeting", "회의")]
CHILD_TABS = [(CHILD_REGULAR, "재원생"), (CHILD_CONSULTATION, "상담아동")]
NO_CHILD_TEXT = "선택 안함"
CHILD_FORM_NEW = "아동 등록"
CHILD_FORM_EDIT = "아동 정보 수정"
GUARDIAN_RELATIONSHIPS = ["모", "부", "조부모", "기타"]
MAX_GUARDIANS = 2
CONTENT_FORM_NEW = "콘텐츠 등록"
CONTENT_FORM_EDIT = "콘텐츠 수정"
SORT_LABELS = [(SORT_LATEST, "최신순"), (SORT_OLDEST, "오래된순"), (SORT_NAME_ASC, "이름순"), (SORT_NAME_DESC, "이름역순")]
SQL_FILE_FILTER = "SQL 파일 (*.sql)"
CONFLICT_TITLE = "일정 겹침"
CONFLICT_TEXT = "{date} {time}에 일정이 겹칩니다. 그래도 등록하시겠습니까?"
ALARM_TITLE = "곧 수업이 시작됩니다"

# Farbkonstanten
COLOR_HAS_SCHEDULE = '#FFE08A'
COLOR_SELECTED = '#FEE500'


def qdate_to_date(qdate):
    """Hilfsfunktion: QDate -> datetime.date"""
    return qdate.toPython() if hasattr(qdate, 'toPython') else datetime.date(qdate.year(), qdate.month(), qdate.day())


def qtime_to_time(qtime):
    return datetime.time(qtime.hour(), qtime.minute())


def to_qdate(d):
    return QDate(d.year, d.month, d.day)


class ScheduleAlarm(QObject):
    """Prüft per QTimer, welche Termine in 5 Minuten beginnen."""
    due = Signal(object)

    def __init__(self, planner, interval_seconds=POLL_INTERVAL_SECONDS, parent=None):
        super().__init__(parent)
        if interval_seconds > MAX_POLL_INTERVAL_SECONDS:
            # größere Abstände können das 5-Minuten-Fenster überspringen
            raise ValueError(f"Abfrageintervall max. {MAX_POLL_INTERVAL_SECONDS}s")
        self.planner = planner
        self.timer = QTimer(self)
        self.timer.setInterval(int(interval_seconds * 1000))
        self.timer.timeout.connect(self.tick)

    def start(self):
        self.timer.start()

    def stop(self):
        self.timer.stop()

    def tick(self, now=None):
        due = self.planner.check_notifications(now)
        for item in due:
            self.due.emit(item)
            QApplication.beep()
        return due


class BackupWorker(QObject):
    finished = Signal(str)
    error = Signal(str)

    def __init__(self, db, fn):
        super().__init__()
        self.db = db
        self.fn = fn

    def run(self):
        try:
            self.db.export_to_sql(self.fn)
            self.finished.emit(self.fn)
        except OSError as e:
            logging.error(f"BackupWorker OSError: {e}")
            self.error.emit(f"파일 오류: {e}")


class RestoreWorker(QObject):
    finished = Signal()
    error = Signal(str)

    def __init__(self, db, fn):
        super().__init__()
        self.db = db
        self.fn = fn

    def run(self):
        try:
            self.db.import_from_sql(self.fn)
            self.finished.emit()
        except Exception as e:
            logging.error(f"RestoreWorker error: {e}")
            self.error.emit(str(e))


class ScheduleTab(QWidget):
    def __init__(self, parent):
        super().__init__()
        self.parent = parent
        self.selected_dates = []
        layout = QHBoxLayout(self)

        # Links: Formular
        form = QVBoxLayout()
        self.mode = QComboBox()
        for key, label in MODE_LABELS:
            self.mode.addItem(label, key)
        form.addWidget(self.mode)

        self.child = QComboBox()
        form.addWidget(QLabel("아동 선택"))
        form.addWidget(self.child)
        self.title = QLineEdit(); self.title.setPlaceholderText("제목")
        form.addWidget(self.title)
        self.type = QComboBox()
        for key, label in TYPE_LABELS:
            self.type.addItem(label, key)
        form.addWidget(self.type)

        times = QHBoxLayout()
        self.start_time = QTimeEdit(QTime(10, 0)); self.start_time.setDisplayFormat("HH:mm")
        self.end_time = QTimeEdit(QTime(10, 40)); self.end_time.setDisplayFormat("HH:mm")
        times.addWidget(self.start_time); times.addWidget(QLabel("~")); times.addWidget(self.end_time)
        form.addLayout(times)

        rec = QGroupBox("반복")
        rec_layout = QHBoxLayout(rec)
        self.frequency = QComboBox()
        for key, label in FREQ_LABELS:
            self.frequency.addItem(label, key)
        rec_layout.addWidget(self.frequency)
        rec_layout.addWidget(QLabel("종료일"))
        self.end_date = QDateEdit(QDate.currentDate().addMonths(1)); self.end_date.setCalendarPopup(True)
        rec_layout.addWidget(self.end_date)
        form.addWidget(rec)

        self.description = QLineEdit(); self.description.setPlaceholderText("메모")
        form.addWidget(self.description)
        self.selection_label = QLabel("")
        form.addWidget(self.selection_label)
        self.btn_add = QPushButton("일정 등록")
        form.addWidget(self.btn_add)
        form.addStretch()
        layout.addLayout(form)

        # Rechts: Kalender und Tagesliste
        right = QVBoxLayout()
        self.calendar = QCalendarWidget(); self.calendar.setGridVisible(True)
        right.addWidget(self.calendar)
        self.day_list = QListWidget()
        right.addWidget(self.day_list)

        actions = QHBoxLayout()
        self.btn_complete = QPushButton("완료")
        self.btn_noshow = QPushButton("불참")
        self.btn_delete = QPushButton("삭제")
        actions.addWidget(self.btn_complete); actions.addWidget(self.btn_noshow); actions.addWidget(self.btn_delete)
        right.addLayout(actions)

        move = QHBoxLayout()
        self.move_date = QDateEdit(QDate.currentDate()); self.move_date.setCalendarPopup(True)
        self.move_time = QTimeEdit(QTime(10, 0)); self.move_time.setDisplayFormat("HH:mm")
        self.btn_move = QPushButton("일정변경")
        move.addWidget(self.move_date); move.addWidget(self.move_time); move.addWidget(self.btn_move)
        right.addLayout(move)
        layout.addLayout(right)

        # Signale
        self.calendar.clicked.connect(self.on_date_clicked)
        self.mode.currentIndexChanged.connect(self.on_mode_changed)
        self.child.currentIndexChanged.connect(self.on_child_changed)
        self.start_time.timeChanged.connect(self.on_start_changed)
        self.btn_add.clicked.connect(self.parent.on_add_schedule)
        self.btn_complete.clicked.connect(self.parent.on_mark_completed)
        self.btn_noshow.clicked.connect(self.parent.on_mark_noshow)
        self.btn_delete.clicked.connect(self.parent.on_delete_schedule)
        self.btn_move.clicked.connect(self.parent.on_reschedule)

    def current_mode(self):
        return self.mode.currentData()

    def selected_day(self):
        return qdate_to_date(self.calendar.selectedDate())

    def selected_schedule_id(self):
        item = self.day_list.currentItem()
        return item.data(Qt.UserRole) if item else None

    def on_mode_changed(self, _index):
        self.selected_dates = []
        self.selection_label.clear()

    def on_date_clicked(self, qdate):
        if self.current_mode() == MODE_MULTI:
            d = qdate_to_date(qdate)
            if d in self.selected_dates:
                self.selected_dates.remove(d)
            else:
                self.selected_dates = sorted(self.selected_dates + [d])
            self.selection_label.setText(", ".join(x.strftime('%m-%d') for x in self.selected_dates))
        self.parent.refresh_calendar()

    def on_child_changed(self, _index):
        child_id = self.child.currentData()
        if not child_id:
            return
        try:
            self.title.setText(default_title(self.parent.planner.get_child(child_id)))
        except PlannerError:
            pass

    def on_start_changed(self, qtime):
        minutes = self.parent.planner.settings.default_class_duration
        try:
            end = add_minutes(qtime_to_time(qtime), minutes)
        except PlannerError:
            return
        self.end_time.setTime(QTime(end.hour, end.minute))

    def template(self):
        return ScheduleTemplate(
            title=self.title.text().strip(),
            date=self.selected_day(),
            start_time=qtime_to_time(self.start_time.time()),
            end_time=qtime_to_time(self.end_time.time()),
            type=self.type.currentData(),
            child_id=self.child.currentData() or None,
            description=self.description.text().strip(),
        )


class ChildrenTab(QWidget):
    def __init__(self, parent):
        super().__init__()
        self.parent = parent
        self.editing_id = None
        layout = QVBoxLayout(self)

        top = QHBoxLayout()
        self.status = QComboBox()
        for key, label in CHILD_TABS:
            self.status.addItem(label, key)
        self.search = QLineEdit(); self.search.setPlaceholderText("이름 검색")
        top.addWidget(self.status); top.addWidget(self.search)
        layout.addLayout(top)

        self.child_list = QListWidget()
        layout.addWidget(self.child_list)

        self.form = QGroupBox(CHILD_FORM_NEW)
        fl = QVBoxLayout(self.form)
        row = QHBoxLayout()
        self.name = QLineEdit(); self.name.setPlaceholderText("이름")
        self.gender = QComboBox(); self.gender.addItem("남", "male"); self.gender.addItem("여", "female")
        self.dob = QDateEdit(QDate(2018, 1, 1)); self.dob.setCalendarPopup(True)
        for w in (self.name, self.gender, self.dob):
            row.addWidget(w)
        fl.addLayout(row)

        # bis zu zwei Bezugspersonen
        self.guardian_rows = []
        for _ in range(MAX_GUARDIANS):
            g_row = QHBoxLayout()
            g_name = QLineEdit(); g_name.setPlaceholderText("보호자")
            g_rel = QComboBox(); g_rel.addItems(GUARDIAN_RELATIONSHIPS); g_rel.setEditable(True)
            g_phone = QLineEdit(); g_phone.setPlaceholderText("연락처")
            for w in (g_name, g_rel, g_phone):
                g_row.addWidget(w)
            fl.addLayout(g_row)
            self.guardian_rows.append((g_name, g_rel, g_phone))
        # Kurzzugriff auf die erste Bezugsperson
        self.guardian_name, _, self.guardian_phone = self.guardian_rows[0]

        self.notes = QPlainTextEdit(); self.notes.setPlaceholderText("특이사항")
        self.notes.setFixedHeight(60)
        fl.addWidget(self.notes)

        buttons = QHBoxLayout()
        self.btn_add = QPushButton("등록")
        self.btn_cancel = QPushButton("취소")
        buttons.addWidget(self.btn_add); buttons.addWidget(self.btn_cancel)
        fl.addLayout(buttons)
        layout.addWidget(self.form)

        actions = QHBoxLayout()
        self.btn_edit = QPushButton("수정")
        self.btn_delete = QPushButton("삭제")
        actions.addWidget(self.btn_edit); actions.addWidget(self.btn_delete)
        layout.addLayout(actions)

        self.status.currentIndexChanged.connect(lambda _i: self.parent.refresh_children())
        self.search.textChanged.connect(lambda _t: self.parent.refresh_children())
        self.btn_add.clicked.connect(self.parent.on_save_child)
        self.btn_cancel.clicked.connect(self.clear_form)
        self.btn_edit.clicked.connect(self.parent.on_edit_child)
        self.child_list.itemDoubleClicked.connect(lambda _item: self.parent.on_edit_child())
        self.btn_delete.clicked.connect(self.parent.on_delete_child)

    def selected_child_id(self):
        item = self.child_list.currentItem()
        return item.data(Qt.UserRole) if item else None

    def load_child(self, child):
        """Formular mit einem vorhandenen Kind füllen (Bearbeiten)."""
        self.editing_id = child.id
        self.name.setText(child.name)
        self.gender.setCurrentIndex(max(0, self.gender.findData(child.gender)))
        self.dob.setDate(to_qdate(child.dob) if child.dob else QDate(2018, 1, 1))
        for i, (g_name, g_rel, g_phone) in enumerate(self.guardian_rows):
            g = child.guardians[i] if i < len(child.guardians) else None
            g_name.setText(g.name if g else '')
            g_rel.setCurrentText(g.relationship if g else GUARDIAN_RELATIONSHIPS[0])
            g_phone.setText(g.phone if g else '')
        self.notes.setPlainText(child.notes)
        self.form.setTitle(CHILD_FORM_EDIT)
        self.btn_add.setText("저장")

    def clear_form(self):
        self.editing_id = None
        self.name.clear()
        for g_name, g_rel, g_phone in self.guardian_rows:
            g_name.clear(); g_phone.clear()
            g_rel.setCurrentText(GUARDIAN_RELATIONSHIPS[0])
        self.notes.clear()
        self.form.setTitle(CHILD_FORM_NEW)
        self.btn_add.setText("등록")

    def form_child(self):
        guardians = []
        for g_name, g_rel, g_phone in self.guardian_rows:
            if g_name.text().strip():
                guardians.append(Guardian(g_name.text().strip(), g_phone.text().strip(),
                                          g_rel.currentText().strip() or GUARDIAN_RELATIONSHIPS[0]))
        return Child(
            id=self.editing_id or '',
            name=self.name.text().strip(),
            status=self.status.currentData(),
            gender=self.gender.currentData(),
            dob=qdate_to_date(self.dob.date()),
            guardians=guardians,
            notes=self.notes.toPlainText().strip(),
        )


class SettingsTab(QWidget):
    def __init__(self, parent):
        super().__init__()
        self.parent = parent
        layout = QVBoxLayout(self)

        hl = QHBoxLayout()
        hl.addWidget(QLabel("기본 수업 시간(분):"))
        self.duration = QSpinBox(); self.duration.setRange(10, 180); self.duration.setSingleStep(5)
        hl.addWidget(self.duration)
        self.notifications = QCheckBox("5분 전 알림 사용")
        hl.addWidget(self.notifications)
        self.btn_save = QPushButton("저장")
        hl.addWidget(self.btn_save)
        layout.addLayout(hl)

        db_row = QHBoxLayout()
        self.btn_backup = QPushButton("DB 백업")
        self.btn_restore = QPushButton("DB 복원")
        self.btn_push = QPushButton("클라우드 업로드")
        self.btn_pull = QPushButton("클라우드 다운로드")
        for b in (self.btn_backup, self.btn_restore, self.btn_push, self.btn_pull):
            db_row.addWidget(b)
        layout.addLayout(db_row)

        export = QGroupBox("내보내기")
        el = QHBoxLayout(export)
        self.report_child = QComboBox()
        self.report_from = QDateEdit(QDate.currentDate().addMonths(-1)); self.report_from.setCalendarPopup(True)
        self.report_to = QDateEdit(QDate.currentDate()); self.report_to.setCalendarPopup(True)
        self.btn_pdf = QPushButton("PDF 리포트")
        self.btn_csv = QPushButton("CSV 내보내기")
        for w in (self.report_child, self.report_from, self.report_to, self.btn_pdf, self.btn_csv):
            el.addWidget(w)
        layout.addWidget(export)
        layout.addStretch()

        self.btn_save.clicked.connect(self.parent.on_save_settings)
        self.btn_backup.clicked.connect(self.parent.on_backup)
        self.btn_restore.clicked.connect(self.parent.on_restore)
        self.btn_push.clicked.connect(self.parent.on_push_cloud)
        self.btn_pull.clicked.connect(self.parent.on_pull_cloud)
        self.btn_pdf.clicked.connect(self.parent.on_export_pdf)
        self.btn_csv.clicked.connect(self.parent.on_export_csv)


class ContentTab(QWidget):
    def __init__(self, parent):
        super().__init__()
        self.parent = parent
        self.editing_id = None
        self.tags = []
        layout = QVBoxLayout(self)

        top = QHBoxLayout()
        self.category = QComboBox()
        for key, label in CATEGORIES.items():
            self.category.addItem(label, key)
        self.search = QLineEdit(); self.search.setPlaceholderText("제목 또는 태그 검색")
        self.sort = QComboBox()
        for key, label in SORT_LABELS:
            self.sort.addItem(label, key)
        for w in (self.category, self.search, self.sort):
            top.addWidget(w)
        layout.addLayout(top)

        self.content_list = QListWidget()
        layout.addWidget(self.content_list)

        actions = QHBoxLayout()
        self.btn_edit = QPushButton("수정")
        self.btn_copy = QPushButton("복사")
        self.btn_delete = QPushButton("삭제")
        for b in (self.btn_edit, self.btn_copy, self.btn_delete):
            actions.addWidget(b)
        layout.addLayout(actions)

        self.form = QGroupBox(CONTENT_FORM_NEW)
        fl = QVBoxLayout(self.form)
        row = QHBoxLayout()
        self.form_category = QComboBox()
        for key, label in CATEGORIES.items():
            self.form_category.addItem(label, key)
        self.title = QLineEdit(); self.title.setPlaceholderText("제목")
        row.addWidget(self.form_category); row.addWidget(self.title)
        fl.addLayout(row)
        self.url = QLineEdit(); self.url.setPlaceholderText("콘텐츠 URL")
        self.thumbnail = QLineEdit(); self.thumbnail.setPlaceholderText("썸네일 URL")
        fl.addWidget(self.url); fl.addWidget(self.thumbnail)

        tag_row = QHBoxLayout()
        self.tag_input = QLineEdit(); self.tag_input.setPlaceholderText("태그")
        self.btn_add_tag = QPushButton("태그 추가")
        self.btn_remove_tag = QPushButton("태그 삭제")
        for w in (self.tag_input, self.btn_add_tag, self.btn_remove_tag):
            tag_row.addWidget(w)
        fl.addLayout(tag_row)
        self.tag_list = QListWidget(); self.tag_list.setFixedHeight(60)
        fl.addWidget(self.tag_list)

        buttons = QHBoxLayout()
        self.btn_save = QPushButton("등록")
        self.btn_cancel = QPushButton("취소")
        buttons.addWidget(self.btn_save); buttons.addWidget(self.btn_cancel)
        fl.addLayout(buttons)
        layout.addWidget(self.form)

        self.category.currentIndexChanged.connect(lambda _i: self.parent.refresh_contents())
        self.search.textChanged.connect(lambda _t: self.parent.refresh_contents())
        self.sort.currentIndexChanged.connect(lambda _i: self.parent.refresh_contents())
        self.tag_input.returnPressed.connect(self.on_add_tag)
        self.btn_add_tag.clicked.connect(self.on_add_tag)
        self.btn_remove_tag.clicked.connect(self.on_remove_tag)
        self.btn_save.clicked.connect(self.parent.on_save_content)
        self.btn_cancel.clicked.connect(self.clear_form)
        self.btn_edit.clicked.connect(self.parent.on_edit_content)
        self.content_list.itemDoubleClicked.connect(lambda _item: self.parent.on_edit_content())
        self.btn_copy.clicked.connect(self.parent.on_copy_content)
        self.btn_delete.clicked.connect(self.parent.on_delete_content)

    def selected_content_id(self):
        item = self.content_list.currentItem()
        return item.data(Qt.UserRole) if item else None

    def _show_tags(self):
        self.tag_list.clear()
        self.tag_list.addItems(self.tags)

    def on_add_tag(self):
        self.tags = add_tag(self.tags, self.tag_input.text())
        self.tag_input.clear()
        self._show_tags()

    def on_remove_tag(self):
        item = self.tag_list.currentItem()
        if item:
            self.tags = remove_tag(self.tags, item.text())
            self._show_tags()

    def load_content(self, item):
        self.editing_id = item.id
        self.form_category.setCurrentIndex(max(0, self.form_category.findData(item.category_id)))
        self.title.setText(item.title)
        self.url.setText(item.target_url)
        self.thumbnail.setText(item.thumbnail_url)
        self.tags = list(item.tags)
        self._show_tags()
        self.form.setTitle(CONTENT_FORM_EDIT)
        self.btn_save.setText("저장")

    def clear_form(self):
        self.editing_id = None
        self.form_category.setCurrentIndex(max(0, self.form_category.findData(self.category.currentData())))
        for w in (self.title, self.url, self.thumbnail, self.tag_input):
            w.clear()
        self.tags = []
        self._show_tags()
        self.form.setTitle(CONTENT_FORM_NEW)
        self.btn_save.setText("등록")

    def form_content(self):
        return ContentItem(
            id=self.editing_id or '',
            category_id=self.form_category.currentData(),
            title=self.title.text().strip(),
            target_url=self.url.text().strip(),
            thumbnail_url=self.thumbnail.text().strip(),
            tags=list(self.tags),
        )


class MainWindow(QMainWindow):
    def __init__(self, db=None, planner=None):
        super().__init__()
        self.setWindowTitle(WINDOW_TITLE)
        self.resize(1000, 650)
        if db is None:
            db = Database(cloud=CloudStore.from_config(load_cloud_config()))
        self.db = db
        self.planner = planner if planner is not None else SchedulePlanner(db)
        self.planner.load()

        app = QApplication.instance()
        app.aboutToQuit.connect(self.cleanup)

        tabs = QTabWidget(); self.setCentralWidget(tabs)
        self.tab1 = ScheduleTab(self); self.tab2 = ChildrenTab(self); self.tab3 = SettingsTab(self)
        self.tab4 = ContentTab(self)
        tabs.addTab(self.tab1, TAB_SCHEDULE)
        tabs.addTab(self.tab2, TAB_CHILDREN)
        tabs.addTab(self.tab4, TAB_CONTENTS)
        tabs.addTab(self.tab3, TAB_SETTINGS)

        self.backup_thread = None
        self.restore_thread = None

        self.alarm = ScheduleAlarm(self.planner, parent=self)
        self.alarm.due.connect(self.on_schedule_due)
        self.alarm.start()

        self.load_settings_form()
        self.refresh_all()

    # --- Anzeige ---
    def refresh_all(self):
        self.refresh_child_combos()
        self.refresh_children()
        self.refresh_contents()
        self.refresh_calendar()

    def refresh_child_combos(self):
        for combo, with_none in ((self.tab1.child, True), (self.tab3.report_child, False)):
            combo.blockSignals(True)
            combo.clear()
            if with_none:
                combo.addItem(NO_CHILD_TEXT, None)
            for c in filter_children(self.planner.children):
                combo.addItem(c.name, c.id)
            combo.blockSignals(False)

    def refresh_children(self):
        tab = self.tab2
        tab.child_list.clear()
        children = filter_children(self.planner.children, tab.status.currentData(), tab.search.text())
        today = datetime.date.today()
        for char, group in group_by_chosung(children).items():
            header = QListWidgetItem(char)
            header.setFlags(Qt.NoItemFlags)
            tab.child_list.addItem(header)
            for c in group:
                age = calculate_age(c.dob, today)
                text = f"  {c.name}  {age if age is not None else '-'}세 / {format_next_class(c.id, self.planner.schedules)}"
                item = QListWidgetItem(text); item.setData(Qt.UserRole, c.id)
                tab.child_list.addItem(item)

    def refresh_contents(self):
        tab = self.tab4
        counts = count_by_category(self.planner.contents)
        for i, (key, label) in enumerate(CATEGORIES.items()):
            tab.category.setItemText(i, f"{label} ({counts[key]})")
        tab.content_list.clear()
        for c in filter_contents(self.planner.contents, tab.category.currentData(),
                                 tab.search.text(), tab.sort.currentData()):
            tags = " ".join(f"#{t}" for t in c.tags)
            item = QListWidgetItem(f"{c.title}  {tags}".rstrip()); item.setData(Qt.UserRole, c.id)
            item.setToolTip(c.target_url)
            tab.content_list.addItem(item)

    def refresh_calendar(self):
        cal = self.tab1.calendar
        cal.setDateTextFormat(QDate(), QTextCharFormat())

        def apply_format(d, color):
            fmt = QTextCharFormat()
            fmt.setBackground(QBrush(QColor(color)))
            cal.setDateTextFormat(to_qdate(d), fmt)

        for s in self.planner.schedules:
            apply_format(s.date, COLOR_HAS_SCHEDULE)
        for d in self.tab1.selected_dates:
            apply_format(d, COLOR_SELECTED)

        day = self.tab1.selected_day()
        self.tab1.day_list.clear()
        day_items = self.planner.schedules_for_date(day)
        overlapping = {x.id for pair in find_overlapping_pairs(day_items) for x in pair}
        for s in day_items:
            text = format_schedule_line(s)
            if s.id in overlapping:
                text = "⚠ " + text
            item = QListWidgetItem(text); item.setData(Qt.UserRole, s.id)
            self.tab1.day_list.addItem(item)

    def load_settings_form(self):
        st = self.planner.settings
        self.tab3.duration.setValue(st.default_class_duration)
        self.tab3.notifications.setChecked(st.enable_notifications)

    # --- Termine ---
    def on_add_schedule(self):
        tab = self.tab1
        template = tab.template()
        if not template.title:
            QMessageBox.warning(self, "일정 등록", "제목을 입력해주세요.")
            return
        mode = tab.current_mode()
        try:
            if mode == MODE_SINGLE and self.planner.check_conflict(template.date, template.start_time, template.end_time):
                answer = QMessageBox.question(self, CONFLICT_TITLE, CONFLICT_TEXT.format(
                    date=template.date.isoformat(), time=template.start_time.strftime('%H:%M')))
                if answer != QMessageBox.Yes:
                    return
            items, conflicts = self.planner.create_schedules(
                template, mode,
                dates=tab.selected_dates,
                end_date=qdate_to_date(tab.end_date.date()),
                frequency=tab.frequency.currentData(),
            )
        except PlannerError as e:
            logging.error(f"Fehler beim Anlegen des Termins: {e}")
            QMessageBox.critical(self, "오류", str(e))
            return
        if conflicts and mode != MODE_SINGLE:
            QMessageBox.information(self, CONFLICT_TITLE, f"{len(conflicts)}개의 기존 일정과 겹칩니다.")
        tab.selected_dates = []
        tab.selection_label.clear()
        self.refresh_all()
        return items

    def _selected_or_warn(self):
        schedule_id = self.tab1.selected_schedule_id()
        if not schedule_id:
            QMessageBox.warning(self, "일정", "일정을 선택해주세요.")
        return schedule_id

    def on_mark_completed(self):
        schedule_id = self._selected_or_warn()
        if schedule_id:
            self.planner.mark_completed(schedule_id)
            self.refresh_all()

    def on_mark_noshow(self):
        schedule_id = self._selected_or_warn()
        if not schedule_id:
            return
        reason, ok = QInputDialog.getText(self, "불참", "사유:")
        if ok:
            self.planner.mark_noshow(schedule_id, reason)
            self.refresh_all()

    def on_delete_schedule(self):
        schedule_id = self._selected_or_warn()
        if schedule_id:
            self.planner.delete_schedule(schedule_id)
            self.refresh_all()

    def on_reschedule(self):
        schedule_id = self._selected_or_warn()
        if not schedule_id:
            return
        new_date = qdate_to_date(self.tab1.move_date.date())
        new_start = qtime_to_time(self.tab1.move_time.time())
        try:
            self.planner.reschedule(schedule_id, new_date, new_start)
        except PlannerError as e:
            QMessageBox.critical(self, "오류", str(e))
            return
        self.refresh_all()

    def on_schedule_due(self, item):
        QMessageBox.information(self, ALARM_TITLE, f"{item.title}\n{item.start_time.strftime('%H:%M')} 시작")

    # --- Kinder ---
    def on_save_child(self):
        tab = self.tab2
        child = tab.form_child()
        if not child.name:
            QMessageBox.warning(self, CHILD_FORM_NEW, "이름을 입력해주세요.")
            return
        try:
            if tab.editing_id:
                child.created_at = self.planner.get_child(tab.editing_id).created_at
                self.planner.update_child(child)
            else:
                self.planner.add_child(child)
        except PlannerError as e:
            QMessageBox.warning(self, CHILD_FORM_NEW, str(e))
            return
        tab.clear_form()
        self.refresh_all()

    def on_edit_child(self):
        child_id = self.tab2.selected_child_id()
        if not child_id:
            QMessageBox.warning(self, CHILD_FORM_EDIT, "아동을 선택해주세요.")
            return
        self.tab2.load_child(self.planner.get_child(child_id))

    def on_delete_child(self):
        child_id = self.tab2.selected_child_id()
        if child_id:
            self.planner.delete_child(child_id)
            if self.tab2.editing_id == child_id:
                self.tab2.clear_form()
            self.refresh_all()

    # --- Inhalte ---
    def on_save_content(self):
        tab = self.tab4
        item = tab.form_content()
        try:
            if tab.editing_id:
                item.created_at = self.planner.get_content(tab.editing_id).created_at
                self.planner.update_content(item)
            else:
                self.planner.add_content(item)
        except PlannerError as e:
            QMessageBox.warning(self, CONTENT_FORM_NEW, str(e))
            return
        # Liste auf die Kategorie des gespeicherten Inhalts umschalten
        tab.category.setCurrentIndex(max(0, tab.category.findData(item.category_id)))
        tab.clear_form()
        self.refresh_contents()

    def _selected_content_or_warn(self):
        content_id = self.tab4.selected_content_id()
        if not content_id:
            QMessageBox.warning(self, TAB_CONTENTS, "콘텐츠를 선택해주세요.")
        return content_id

    def on_edit_content(self):
        content_id = self._selected_content_or_warn()
        if content_id:
            self.tab4.load_content(self.planner.get_content(content_id))

    def on_copy_content(self):
        content_id = self._selected_content_or_warn()
        if content_id:
            self.planner.copy_content(content_id)
            self.refresh_contents()

    def on_delete_content(self):
        content_id = self._selected_content_or_warn()
        if not content_id:
            return
        if QMessageBox.question(self, TAB_CONTENTS, "정말 삭제하시겠습니까?") != QMessageBox.Yes:
            return
        self.planner.delete_content(content_id)
        if self.tab4.editing_id == content_id:
            self.tab4.clear_form()
        self.refresh_contents()

    # --- Einstellungen / Export ---
    def on_save_settings(self):
        self.planner.update_settings(CalendarSettings(
            default_class_duration=self.tab3.duration.value(),
            enable_notifications=self.tab3.notifications.isChecked(),
        ))

    def on_backup(self):
        if self.backup_thread and self.backup_thread.isRunning():
            return
        fn, _ = QFileDialog.getSaveFileName(self, "백업 저장", filter=SQL_FILE_FILTER)
        if not fn:
            return
        self.backup_thread = QThread()
        self.backup_worker = BackupWorker(self.db, fn)
        self._run_worker(self.backup_thread, self.backup_worker,
                         lambda f: QMessageBox.information(self, "백업", f"백업 완료:\n{f}"))

    def on_restore(self):
        if self.restore_thread and self.restore_thread.isRunning():
            return
        fn, _ = QFileDialog.getOpenFileName(self, "백업 복원", filter=SQL_FILE_FILTER)
        if not fn:
            return
        if QMessageBox.question(self, "복원", "현재 데이터가 모두 덮어쓰여집니다. 계속할까요?") != QMessageBox.Yes:
            return
        self.restore_thread = QThread()
        self.restore_worker = RestoreWorker(self.db, fn)
        self._run_worker(self.restore_thread, self.restore_worker, self.on_restore_finished)

    def _run_worker(self, thread, worker, on_finished):
        worker.moveToThread(thread)
        thread.started.connect(worker.run)
        worker.finished.connect(on_finished)
        worker.error.connect(self.on_worker_error)
        worker.finished.connect(thread.quit)
        worker.error.connect(thread.quit)
        worker.finished.connect(worker.deleteLater)
        thread.finished.connect(thread.deleteLater)
        thread.start()

    def on_restore_finished(self):
        # nur lokal laden: der wiederhergestellte Stand ist maßgeblich
        self.planner.load(local_only=True)
        self.load_settings_form()
        self.refresh_all()
        QMessageBox.information(self, "복원", "복원이 완료되었습니다.")

    def on_worker_error(self, msg):
        logging.error(f"Worker error: {msg}")
        QMessageBox.critical(self, "오류", msg)

    def on_push_cloud(self):
        if not self.db.push_all_to_cloud():
            QMessageBox.warning(self, "클라우드", "클라우드 동기화에 실패했습니다.")
            return
        QMessageBox.information(self, "클라우드", "클라우드 동기화가 완료되었습니다.")

    def on_pull_cloud(self):
        if self.db.pull_all_from_cloud():
            self.planner.load()
            self.load_settings_form()
            self.refresh_all()

    def on_export_pdf(self):
        child_id = self.tab3.report_child.currentData()
        if not child_id:
            return
        fn, _ = QFileDialog.getSaveFileName(self, "PDF 리포트", filter="PDF (*.pdf)")
        if not fn:
            return
        try:
            export_child_report(fn, self.planner.get_child(child_id), self.planner.schedules,
                                qdate_to_date(self.tab3.report_from.date()),
                                qdate_to_date(self.tab3.report_to.date()))
        except Exception as e:
            logging.error(f"Export error: {e}")
            QMessageBox.critical(self, "내보내기 오류", str(e))

    def on_export_csv(self):
        fn, _ = QFileDialog.getSaveFileName(self, "CSV 내보내기", filter="CSV (*.csv)")
        if fn:
            export_schedules_csv(fn, self.planner.schedules)

    def cleanup(self):
        self.alarm.stop()
        for thread_attr in ['backup_thread', 'restore_thread']:
            thread = getattr(self, thread_attr, None)
            if thread is not None:
                try:
                    if thread.isRunning():
                        thread.quit()
                        thread.wait()
                except RuntimeError:
                    pass  # Thread-Objekt wurde bereits gelöscht
                setattr(self, thread_attr, None)
        if self.db:
            self.db.close()
            self.db = None

    def closeEvent(self, event):
        self.alarm.stop()
        super().closeEvent(event)


def main():
    logging.basicConfig(level=logging.INFO)
    app = QApplication(sys.argv)
    win = MainWindow()
    win.show()
    sys.exit(app.exec())


if __name__ == '__main__':
    main()
