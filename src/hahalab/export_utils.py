import csv
import logging
import os
import tempfile
from datetime import date
from typing import Iterable, List, Optional

from reportlab.lib.pagesizes import A4
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.pdfgen import canvas

from hahalab.charts import STATUS_COLORS, create_pie_chart
from hahalab.models import Child, ScheduleItem, format_hhmm
from hahalab.statistics import filter_schedules, summarize_schedules

# eingebaute CID-Schrift mit Hangul, keine Fontdatei nötig
PDF_FONT = 'HYSMyeongJo-Medium'

WEEKDAYS_KO = ['월', '화', '수', '목', '금', '토', '일']
STATUS_LABELS = {
    'pending': '예정',
    'completed': '완료',
    'noshow': '불참',
    'rescheduled': '일정변경',
}
CSV_HEADER = ["날짜", "요일", "시작", "종료", "제목", "유형", "상태", "메모"]


def format_schedule_line(item: ScheduleItem) -> str:
    """Kurzbeschreibung eines Termins für Listen und Berichte."""
    wd = WEEKDAYS_KO[item.date.weekday()]
    status = STATUS_LABELS.get(item.status, item.status)
    return (f"{item.date.isoformat()} ({wd}) {format_hhmm(item.start_time)}~{format_hhmm(item.end_time)}"
            f" {item.title} [{status}]")


def export_schedules_csv(filename: str, schedules: Iterable[ScheduleItem]):
    rows = sorted(schedules, key=lambda s: (s.date, s.start_time))
    with open(filename, 'w', newline='', encoding='utf-8-sig') as f:
        writer = csv.writer(f)
        writer.writerow(CSV_HEADER)
        for s in rows:
            writer.writerow([
                s.date.isoformat(), WEEKDAYS_KO[s.date.weekday()],
                format_hhmm(s.start_time), format_hhmm(s.end_time),
                s.title, s.type, STATUS_LABELS.get(s.status, s.status),
                s.status_notes.replace('\n', ' / '),
            ])


def _register_font():
    if PDF_FONT not in pdfmetrics.getRegisteredFontNames():
        pdfmetrics.registerFont(UnicodeCIDFont(PDF_FONT))


def export_child_report(filename: str, child: Child, schedules: Iterable[ScheduleItem],
                        start: Optional[date] = None, end: Optional[date] = None) -> dict:
    """
    PDF-Bericht für ein Kind: Kennzahlen, Terminliste, Tortendiagramm der Status.
    Gibt die Zusammenfassung zurück.
    """
    _register_font()
    selected: List[ScheduleItem] = sorted(
        filter_schedules(schedules, child.id, start, end), key=lambda s: (s.date, s.start_time)
    )
    stats = summarize_schedules(selected)

    c = canvas.Canvas(filename, pagesize=A4)
    w, h = A4
    y = h - 50
    c.setFont(PDF_FONT, 16)
    c.drawString(50, y, f"{child.name} 수업 리포트")
    y -= 30
    c.setFont(PDF_FONT, 10)
    period = f"{start.isoformat() if start else '-'} ~ {end.isoformat() if end else '-'}"
    c.drawString(50, y, f"기간: {period}")
    y -= 20
    c.drawString(50, y, f"전체 일정: {stats['total']}  완료: {stats['completed']}  불참: {stats['noshow']}"
                        f"  일정변경: {stats['rescheduled']}  예정: {stats['pending']}")
    y -= 15
    c.drawString(50, y, f"출석률: {stats['attendance_pct']}%")
    y -= 25

    for item in selected:
        if y < 80:
            c.showPage()
            c.setFont(PDF_FONT, 10)
            y = h - 50
        c.drawString(60, y, format_schedule_line(item))
        y -= 15

    keys = ['completed', 'noshow', 'rescheduled', 'pending']
    with tempfile.TemporaryDirectory() as tmpdir:
        png = os.path.join(tmpdir, 'status.png')
        try:
            create_pie_chart([stats[k] for k in keys], [STATUS_LABELS[k] for k in keys], png,
                             colors=[STATUS_COLORS[k] for k in keys])
        except Exception as e:
            logging.error(f"Fehler bei create_pie_chart: {e}")
            raise
        c.showPage()
        size = 250
        c.drawImage(png, (w - size) / 2, h - 80 - size, width=size, height=size)
        c.save()
    return stats
