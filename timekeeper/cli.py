"""Command-line interface to the time-tracking engine.

Every command either prints its result, or prints `error: <reason>` and
exits with status 1. Examples:

    timekeeper start --tag Focus
    timekeeper status
    timekeeper week --date 2024-03-14
    timekeeper settings --set daily_goal=21600
"""

import argparse
import json
import logging
import os
import sys
from datetime import date, timedelta

from marshmallow import ValidationError

from timekeeper.app import create_app
from timekeeper.core.errors import StoreError, TimeKeeperError
from timekeeper.core.formatting import fmt_duration
from timekeeper.core.timezone import local_midnight
from timekeeper.history import GoalStatus, goal_progress
from timekeeper.schemas import BlockSchema, DayBlockSchema, SettingsSchema

log = logging.getLogger(__name__)

DEFAULT_CONFIG = 'config/prod.py'


def _parse_date(value):
    try:
        return date.fromisoformat(value)
    except ValueError as err:
        raise argparse.ArgumentTypeError(f'{value!r} is not a YYYY-MM-DD date') from err


def _tag_label(block):
    return f' [{block.tag.name}]' if block.tag is not None else ''


def _block_line(block, settings):
    start = block.start.strftime(settings.time_format)
    end = 'now' if block.running else block.end.strftime(settings.time_format)
    if block.end.date() != block.start.date() and not block.running:
        end = block.end.strftime(f'{settings.date_format} {settings.time_format}')
    return f'{block.id:>5}  {start} - {end}  {fmt_duration(block.duration)}{_tag_label(block)}'


def _goal_line(label, state, goal, running, settings):
    if state.status is GoalStatus.zero_goal:
        return None
    if state.status is GoalStatus.reached:
        return f'Huzzah, {label} achieved!'
    progress = goal_progress(state, goal, running)
    percent = f'{progress.fraction:.0%}'
    if progress.finishes_at is not None:
        return f'{label} finishes at {progress.finishes_at.strftime(settings.time_format)} ({percent})'
    return f'{fmt_duration(state.remaining)} left on {label} ({percent})'


def cmd_status(app, args):
    block = app.stopwatch.current()
    if block is None:
        print('Stopped')
    else:
        since = block.start.strftime(app.settings.time_format)
        print(f'Running since {since} ({fmt_duration(block.duration)}){_tag_label(block)}')
    cmd_goals(app, args, running=block is not None)


def cmd_start(app, args):
    tag = app.tags.find(args.tag) if args.tag else None
    block = app.stopwatch.start(tag)
    print(f'Started block {block.id}{_tag_label(block)}')


def cmd_stop(app, args):
    app.stopwatch.stop()
    print('Stopped')


def cmd_retag(app, args):
    block = app.blocks.get(args.block_id)
    block.tag = app.tags.find(args.tag) if args.tag else None
    app.blocks.update_tag(block)
    print(f'Block {block.id} is now{_tag_label(block) or " untagged"}')


def cmd_delete(app, args):
    block = app.blocks.get(args.block_id)
    app.blocks.delete(block)
    print(f'Deleted block {block.id}')


def cmd_tags(app, args):
    for tag in app.tags.all():
        print(f'{tag.id:>5}  {tag.name}')


def cmd_tag_create(app, args):
    tag = app.tags.create(args.name)
    print(f'Created tag {tag.name!r}')


def cmd_tag_rename(app, args):
    tag = app.tags.find(args.old)
    app.tags.rename(tag, args.new)
    print(f'Renamed tag {args.old!r} to {args.new!r}')


def cmd_tag_delete(app, args):
    tag = app.tags.find(args.name)
    app.tags.delete(tag)
    app.tags.purge()
    print(f'Deleted tag {args.name!r}')


def cmd_today(app, args):
    today = app.history.today()
    total, blocks = app.history.blocks_in_day(today)
    print(today.strftime(app.settings.date_format))
    for block in blocks:
        print(_block_line(block, app.settings))
    print(f'Total: {fmt_duration(total)}')


def cmd_week(app, args):
    day = args.date or app.history.today()
    grand_total, days = app.history.blocks_in_week(day, app.settings.start_of_week)
    if args.json:
        print(DayBlockSchema(many=True).dumps(days, indent=2))
        return
    for day_block in days:
        header = day_block.day.strftime(f'%A {app.settings.date_format}')
        print(f'{header}: {fmt_duration(day_block.total)}')
        for block in day_block.blocks:
            print(_block_line(block, app.settings))
    print(f'Week total: {fmt_duration(grand_total)}')


def cmd_goals(app, args, running=None):
    if running is None:
        running = app.stopwatch.is_running()
    lines = (
        _goal_line('Daily goal', app.history.remaining_daily_goal(app.settings),
                   app.settings.daily_goal, running, app.settings),
        _goal_line('Weekly goal', app.history.remaining_weekly_goal(app.settings),
                   app.settings.weekly_goal, running, app.settings),
    )
    for line in lines:
        if line is not None:
            print(line)


def cmd_export(app, args):
    end = args.to + timedelta(days=1)
    blocks = app.blocks.in_range(local_midnight(args.since), local_midnight(end),
                                 include_after=True)
    print(BlockSchema(many=True).dumps(blocks, indent=2))


def cmd_settings(app, args):
    schema = SettingsSchema()
    if args.set:
        data = schema.dump(app.settings)
        for assignment in args.set:
            key, sep, value = assignment.partition('=')
            if not sep:
                print(f'error: expected KEY=VALUE, got {assignment!r}', file=sys.stderr)
                return 1
            data[key.strip()] = value.strip()
        try:
            app.settings = schema.load(data)
        except ValidationError as err:
            print(f'error: invalid settings: {err.messages}', file=sys.stderr)
            return 1
        if not app.save_settings():
            log.warning('The settings apply to this run only')
    print(json.dumps(schema.dump(app.settings), indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='timekeeper', description='Track blocks of working time.')
    parser.add_argument('--config', default=os.environ.get('TIMEKEEPER_CONFIG', DEFAULT_CONFIG),
                        help='configuration file (default: %(default)s)')
    commands = parser.add_subparsers(dest='command', required=True)

    commands.add_parser('status', help='show the stopwatch and the goals').set_defaults(handler=cmd_status)

    start = commands.add_parser('start', help='start the stopwatch')
    start.add_argument('--tag', help='name of the tag for the new block')
    start.set_defaults(handler=cmd_start)

    commands.add_parser('stop', help='stop the stopwatch').set_defaults(handler=cmd_stop)

    retag = commands.add_parser('retag', help='change or clear the tag of a block')
    retag.add_argument('block_id', type=int)
    retag.add_argument('--tag', help='name of the new tag; omit to clear it')
    retag.set_defaults(handler=cmd_retag)

    delete = commands.add_parser('delete', help='delete a block')
    delete.add_argument('block_id', type=int)
    delete.set_defaults(handler=cmd_delete)

    commands.add_parser('tags', help='list the tags').set_defaults(handler=cmd_tags)

    tag_create = commands.add_parser('tag-create', help='create a tag')
    tag_create.add_argument('name')
    tag_create.set_defaults(handler=cmd_tag_create)

    tag_rename = commands.add_parser('tag-rename', help='rename a tag')
    tag_rename.add_argument('old')
    tag_rename.add_argument('new')
    tag_rename.set_defaults(handler=cmd_tag_rename)

    tag_delete = commands.add_parser('tag-delete', help='delete a tag')
    tag_delete.add_argument('name')
    tag_delete.set_defaults(handler=cmd_tag_delete)

    commands.add_parser('today', help="list today's blocks").set_defaults(handler=cmd_today)

    week = commands.add_parser('week', help='summarise a week')
    week.add_argument('--date', type=_parse_date, help='any day of the week (default: today)')
    week.add_argument('--json', action='store_true', help='print the seven days as JSON')
    week.set_defaults(handler=cmd_week)

    commands.add_parser('goals', help='show the progress on the goals').set_defaults(handler=cmd_goals)

    export = commands.add_parser('export', help='print the blocks of a date range as JSON')
    export.add_argument('--from', dest='since', type=_parse_date, required=True)
    export.add_argument('--to', type=_parse_date, required=True)
    export.set_defaults(handler=cmd_export)

    settings = commands.add_parser('settings', help='show or change the settings')
    settings.add_argument('--set', action='append', metavar='KEY=VALUE',
                          help='change a setting; durations are in seconds')
    settings.set_defaults(handler=cmd_settings)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        app = create_app(args.config)
    except TimeKeeperError as err:
        print(f'error: {err.message}', file=sys.stderr)
        return 1

    try:
        status = args.handler(app, args)
    except StoreError as err:
        print(f'error: {err.message}', file=sys.stderr)
        return 1
    finally:
        app.close()
    return status or 0


if __name__ == '__main__':
    sys.exit(main())
