# src/hahalab/main.py

import logging
from datetime import date

from .calendar_logic import MODE_SINGLE, MODE_MULTI, MODE_RECURRING, FREQ_WEEKLY, FREQ_MONTHLY
from .cloud import CloudStore
from .config import load_cloud_config
from .data import Database
from .errors import PlannerError
from .export_utils import format_schedule_line
from .models import ScheduleTemplate, parse_hhmm
from .planner import SchedulePlanner


def input_template(planner: SchedulePlanner) -> ScheduleTemplate:
    print("\n✏️  새 일정:")
    title = input("  제목: ").strip()
    start_str = input("  날짜 (YYYY-MM-DD) [비우면 오늘]: ").strip()
    day = date.today() if not start_str else date.fromisoformat(start_str)
    start = parse_hhmm(input("  시작 시간 (HH:MM) [10:00]: ").strip() or "10:00")
    end_str = input(f"  종료 시간 (HH:MM) [비우면 {planner.settings.default_class_duration}분]: ").strip()
    return ScheduleTemplate(
        title=title,
        date=day,
        start_time=start,
        end_time=parse_hhmm(end_str) if end_str else None,
    )


def run_wizard(db: Database = None):
    print("🎯 HahaLab 일정 등록 🎯")
    if db is None:
        db = Database(cloud=CloudStore.from_config(load_cloud_config()))
    planner = SchedulePlanner(db)
    planner.load()

    template = input_template(planner)
    mode = input("  방식? [1] 단일, [2] 다중선택, [3] 반복: ").strip()
    try:
        if mode == "2":
            raw = input("  날짜들 (YYYY-MM-DD, 쉼표 구분): ")
            dates = [date.fromisoformat(x.strip()) for x in raw.split(",") if x.strip()]
            items, conflicts = planner.create_schedules(template, MODE_MULTI, dates=dates)
        elif mode == "3":
            end = date.fromisoformat(input("  종료일 (YYYY-MM-DD): ").strip())
            freq = FREQ_MONTHLY if input("  [1] 매주, [2] 매월: ").strip() == "2" else FREQ_WEEKLY
            items, conflicts = planner.create_schedules(template, MODE_RECURRING, end_date=end, frequency=freq)
        else:
            items, conflicts = planner.create_schedules(template, MODE_SINGLE)
    except (PlannerError, ValueError) as e:
        logging.error(f"Fehler beim Anlegen: {e}")
        print(f"❌ {e}")
        db.close()
        return []

    print(f"\n✅ {len(items)}개 일정이 등록되었습니다:")
    for item in items:
        print(" ", format_schedule_line(item))
    if conflicts:
        print(f"⚠️  기존 일정 {len(conflicts)}개와 겹칩니다:")
        for c in conflicts:
            print(" ", format_schedule_line(c))
    db.close()
    return items


if __name__ == "__main__":
    run_wizard()
