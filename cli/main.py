#!/usr/bin/env python3
"""
focusday CLI - day view, recurring blocks, planning ritual and focus timer.

Acts as the owner named by FOCUSDAY_USER (default "local").
"""

import asyncio
import sys
from datetime import date, datetime, timedelta

from focusday import config, db, paths
from focusday.focus.notify import CallbackNotifier, completion_message
from focusday.focus.pomodoro import Phase, PomodoroEngine, PomodoroSettings, now_label
from focusday.focus.sessions import PomodoroSessionStore
from focusday.focus.ticker import PomodoroTicker
from focusday.observability import configure_logging
from focusday.planning.daily_plan import DailyPlanStore
from focusday.planning.ritual import DailyPlanningRitual, RitualStep
from focusday.planning.tasks import TaskSource
from focusday.settings import SettingsStore, parse_hhmm
from focusday.state_store import StateStore
from focusday.time_blocks.block_store import BlockStore
from focusday.time_blocks.conflicts import find_conflicts
from focusday.time_blocks.recurrence import RecurrenceMaterializer, RecurringBlockSpec


def print_header(text: str):
    """Print a section header."""
    print(f"\n{'═' * 50}")
    print(f"  {text}")
    print(f"{'═' * 50}")


def print_table(headers: list, rows: list, widths: list = None):
    """Print a simple table."""
    if not widths:
        widths = [max(len(str(row[i])) for row in [headers] + rows) for i in range(len(headers))]

    header_str = " │ ".join(str(h).ljust(w) for h, w in zip(headers, widths))
    print(header_str)
    print("─" * len(header_str))

    for row in rows:
        print(" │ ".join(str(c)[:w].ljust(w) for c, w in zip(row, widths)))


def _store() -> StateStore:
    return StateStore(db.get_db_path_str())


def _parse_day(args: list) -> date:
    return date.fromisoformat(args[0]) if args else date.today()


def cmd_init(args):
    """Create the app directories and converge the database."""
    print_header("focusday - Setup")
    for d in (paths.data_dir(), paths.config_dir(), paths.log_dir()):
        print(f"  ✓ {d}")

    print("\nInitializing database...")
    _store()
    info = db.get_db_info()
    print(f"  ✓ {info['resolved_db_path']} (schema v{info['user_version']})")
    for table, exists in info["tables"].items():
        print(f"    {'✓' if exists else '✗'} {table}")

    print("\nChecking configuration...")
    schedule_yaml = paths.project_root() / "config" / "schedule.yaml"
    if schedule_yaml.exists():
        print("  ✓ schedule.yaml")
    else:
        print("  ✗ schedule.yaml missing, built-in defaults apply")


def cmd_today(args):
    """Show one day's blocks."""
    day = _parse_day(args)
    blocks = BlockStore(_store(), config.CLI_OWNER)
    items = blocks.fetch_by_date(day)

    print_header(f"SCHEDULE {day.isoformat()}")
    if not items:
        print("No blocks scheduled.")
        return

    rows = [
        [
            f"{b.start_time:%H:%M}-{b.end_time:%H:%M}",
            b.block_type.value,
            "✓" if b.is_completed else "",
            b.role.value,
            b.title,
            b.id,
        ]
        for b in items
    ]
    print_table(["Time", "Type", "Done", "Role", "Title", "ID"], rows)

    summary = blocks.day_summary(day)
    print(
        f"\n{summary.completed_blocks}/{summary.total_blocks} done · "
        f"{summary.focus_minutes} min focus · {summary.meeting_minutes} min meetings · "
        f"{summary.break_minutes} min breaks"
    )

    conflicts = find_conflicts(items)
    if conflicts:
        print(f"\n⚠ {len(conflicts)} overlapping pair(s):")
        for c in conflicts:
            print(f"  {c.block_a_id} ↔ {c.block_b_id} ({c.overlap_minutes} min)")


def cmd_recurring(args):
    """Create a daily recurring block."""
    if len(args) < 3:
        print("Usage: recurring <title> <HH:MM> <minutes> [type]")
        return

    title, at, minutes = args[0], parse_hhmm(args[1]), int(args[2])
    block_type = args[3] if len(args) > 3 else "task"
    start = datetime.combine(date.today(), at)
    spec = RecurringBlockSpec(
        title=title,
        start_time=start,
        end_time=start + timedelta(minutes=minutes),
        block_type=block_type,
    )
    result = RecurrenceMaterializer(BlockStore(_store(), config.CLI_OWNER)).create_recurring(spec)
    if result.success:
        print(f"✓ Created {result.instance_count} blocks (family {result.root_id})")
    else:
        print(f"✗ {result.error}")


def cmd_skip(args):
    """Delete one occurrence of a recurring block."""
    if not args:
        print("Usage: skip <block_id>")
        return
    materializer = RecurrenceMaterializer(BlockStore(_store(), config.CLI_OWNER))
    if materializer.skip_instance(args[0]):
        print(f"✓ Skipped {args[0]}")
    else:
        print(f"✗ Block {args[0]} not found")


def cmd_unrecur(args):
    """Delete a whole recurring family, given any member."""
    if not args:
        print("Usage: unrecur <block_id>")
        return
    result = RecurrenceMaterializer(BlockStore(_store(), config.CLI_OWNER)).delete_recurring_family(
        args[0]
    )
    if result.success:
        print(f"✓ Deleted family {result.root_id} ({result.instances_deleted} instances)")
    elif result.partial:
        print(f"⚠ Family {result.root_id} partly deleted: {'; '.join(result.errors)}")
    else:
        print(f"✗ {'; '.join(result.errors)}")


def cmd_extend(args):
    """Top up every recurring family to the rolling horizon."""
    horizon = int(args[0]) if args else config.RECURRING_EXTEND_HORIZON_DAYS
    created = RecurrenceMaterializer(BlockStore(_store(), config.CLI_OWNER)).extend_all(horizon)
    print(f"✓ Created {created} instance(s)")


def cmd_reminders(args):
    """List blocks whose reminder is due soon."""
    blocks = BlockStore(_store(), config.CLI_OWNER)
    upcoming = blocks.upcoming_for_reminder()
    if not upcoming:
        print("No reminders pending.")
        return
    for b in upcoming:
        print(f"  {b.start_time:%H:%M}  {b.title}")
        if "--mark" in args:
            blocks.mark_reminder_sent(b.id)


def cmd_plan(args):
    """Run the daily planning ritual interactively."""
    day = _parse_day(args)
    store = _store()
    ritual = DailyPlanningRitual(
        DailyPlanStore(store, config.CLI_OWNER), TaskSource(store, config.CLI_OWNER)
    )
    ritual.open(day)
    tasks = ritual.open_tasks()

    while ritual.state is not None and not ritual.state.is_completed:
        step = ritual.state.step
        print_header(f"{int(step) + 1}/5 {step.title}")

        if step == RitualStep.WELCOME:
            print(f"Planning {day:%A, %B %d}.")
        elif step == RitualStep.REVIEW:
            if not tasks:
                print("No open tasks.")
            for i, t in enumerate(tasks, 1):
                print(f"  {i}. {t.title} [{t.priority or '-'}]")
        elif step == RitualStep.PRIORITIZE:
            for i, t in enumerate(tasks, 1):
                mark = "★" if t.id in ritual.state.priorities else " "
                print(f"  {mark} {i}. {t.title}")
            picks = input("Pick up to 3 by number (e.g. 1 3): ").split()
            for pick in picks:
                if pick.isdigit() and 1 <= int(pick) <= len(tasks):
                    result = ritual.add_priority(tasks[int(pick) - 1].id)
                    if result.error:
                        print(f"  ✗ {result.error}")
        elif step == RitualStep.INTENTION:
            ritual.set_intention(input("Intention for today: ").strip())
        elif step == RitualStep.READY:
            answer = input("Save plan? [Y/n/b(ack)] ").strip().lower()
            if answer == "b":
                ritual.previous_step()
                continue
            if answer == "n":
                ritual.close()
                print("Discarded.")
                return
            ritual.complete_ritual()
            break

        result = ritual.next_step()
        if result.error:
            print(f"✗ {result.error}")

    if ritual.saved_plan is not None:
        print(f"✓ Plan saved for {day} with {len(ritual.saved_plan.top_priorities)} priorities")
    else:
        print("✗ Plan could not be saved")


async def _run_focus(engine: PomodoroEngine, block_id: str | None):
    engine.start(block_id)
    ticker = PomodoroTicker(engine)
    ticker.start()
    try:
        await ticker.wait()
    finally:
        await ticker.stop()


def cmd_focus(args):
    """Run pomodoro cycles until interrupted."""
    store = _store()
    settings = SettingsStore(store, config.CLI_OWNER).fetch()
    pomodoro = PomodoroSettings.from_schedule(settings)
    engine = PomodoroEngine(
        pomodoro,
        sessions=PomodoroSessionStore(store, config.CLI_OWNER),
        notifier=CallbackNotifier(lambda phase: print(f"\a🔔 {completion_message(phase)}")),
    )

    minutes = {}
    block_id = None
    i = 0
    while i < len(args):
        flag = args[i]
        value = args[i + 1] if i + 1 < len(args) else None
        if flag == "--work" and value:
            minutes["work_minutes"] = int(value)
        elif flag == "--break" and value:
            minutes["break_minutes"] = int(value)
        elif flag == "--block" and value:
            block_id = value
        i += 2
    if minutes:
        engine.update_settings(**minutes)

    last_phase = {"value": Phase.IDLE}

    def show(state):
        if state.phase != last_phase["value"]:
            print(now_label(state))
            last_phase["value"] = state.phase

    engine.subscribe(show)
    print_header("FOCUS (Ctrl-C to stop)")
    try:
        asyncio.run(_run_focus(engine, block_id))
    except KeyboardInterrupt:
        engine.stop()
        print(f"\nStopped after {engine.state.total_sessions_completed} session(s).")


def cmd_help(args):
    """Show help."""
    print_header("focusday CLI")
    print("""
COMMANDS:

  init                          Create directories and the database
  today [YYYY-MM-DD]            Show a day's blocks
  recurring <title> <HH:MM> <minutes> [type]
                                Create a daily block for the next 30 days
  skip <id>                     Remove one occurrence
  unrecur <id>                  Remove a whole recurring family
  extend [days]                 Top up recurring families
  reminders [--mark]            Blocks whose reminder is due
  plan [YYYY-MM-DD]             Run the daily planning ritual
  focus [--work N] [--break N] [--block ID]
                                Run the pomodoro timer
  help                          Show this help
""")


COMMANDS = {
    "init": cmd_init,
    "today": cmd_today,
    "recurring": cmd_recurring,
    "skip": cmd_skip,
    "unrecur": cmd_unrecur,
    "extend": cmd_extend,
    "reminders": cmd_reminders,
    "plan": cmd_plan,
    "focus": cmd_focus,
    "help": cmd_help,
}


def main():
    """Main entry point."""
    configure_logging(level=config.LOG_LEVEL, json_format=config.LOG_JSON, log_file=config.LOG_FILE)
    if len(sys.argv) < 2:
        cmd_help([])
        return

    cmd = sys.argv[1]
    args = sys.argv[2:]

    if cmd in COMMANDS:
        COMMANDS[cmd](args)
    else:
        print(f"Unknown command: {cmd}")
        print("Run 'help' for available commands.")


if __name__ == "__main__":
    main()
