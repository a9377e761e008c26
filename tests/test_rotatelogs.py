import os
import threading
import time
from datetime import datetime, timedelta, timezone

import pytest

from imtools.rotatelogs.events import FileRotatedEvent
from imtools.rotatelogs.rotatelogs import (
    RotateLogs,
    RotateLogsError,
    clock_in,
    local_now,
    utc_now,
)


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, delta):
        self.now += delta


def _dummy_time():
    return (datetime.now().astimezone() - timedelta(days=7)).replace(microsecond=0)


def _read(path):
    with open(path, "rb") as fh:
        return fh.read()


@pytest.mark.parametrize(
    "link_parts, up_levels",
    [(None, 0), (("log",), 0), (("nest1", "nest2", "log"), 2)],
)
def test_log_rotate(tmp_path, link_parts, up_levels):
    dummy = _dummy_time()
    clock = FakeClock(dummy)
    link_name = str(tmp_path.joinpath(*link_parts)) if link_parts else ""
    text = b"Hello, World"

    with RotateLogs(
        str(tmp_path / "log%Y%m%d%H%M%S"),
        clock=clock,
        max_age=timedelta(hours=24),
        link_name=link_name,
    ) as rl:
        assert rl.write(text) == len(text)
        fn = rl.current_filename()
        assert fn != ""
        assert _read(fn) == text

        os.utime(fn, (dummy.timestamp(), dummy.timestamp()))
        assert os.stat(fn).st_mtime == dummy.timestamp()

        clock.advance(timedelta(days=7))
        rl.write(text)
        newfn = rl.current_filename()
        assert newfn != fn
        assert _read(newfn) == text

        assert not os.path.exists(fn)

        if link_parts:
            expected = os.path.join(*([".."] * up_levels), os.path.basename(newfn))
            assert os.readlink(link_name) == expected


def _create_rotation_test_files(directory, base, step, count):
    stamp = base
    for _ in range(count):
        path = directory / ("log" + stamp.strftime("%Y%m%d%H%M%S"))
        path.write_bytes(b"rotation test file\n")
        os.utime(path, (stamp.timestamp(), stamp.timestamp()))
        stamp += step


def test_both_max_age_and_count_disabled(tmp_path):
    clock = FakeClock(datetime(2020, 1, 1, 5, 0, 0))
    with RotateLogs(
        str(tmp_path / "log%Y%m%d%H%M%S"),
        clock=clock,
        max_age=timedelta(0),
        rotation_count=0,
    ) as rl:
        assert rl.write(b"dummy") == 5
        assert rl.current_filename() == str(tmp_path / "log20200101000000")


def test_both_max_age_and_count_enabled(tmp_path):
    with pytest.raises(RotateLogsError):
        RotateLogs(
            str(tmp_path / "log%Y%m%d%H%M%S"),
            max_age=timedelta(microseconds=1),
            rotation_count=1,
        )


def test_only_latest_log_file_is_kept(tmp_path):
    clock = FakeClock(datetime(2020, 1, 1, 5, 0, 0))
    with RotateLogs(
        str(tmp_path / "log%Y%m%d%H%M%S"),
        clock=clock,
        max_age=timedelta(seconds=-1),
        rotation_count=1,
    ) as rl:
        assert rl.write(b"dummy") == len("dummy")
    assert len(list(tmp_path.glob("log*"))) == 1


def test_old_files_purged_except_two(tmp_path):
    dummy = datetime(2020, 1, 1, 5, 0, 0)
    _create_rotation_test_files(tmp_path, dummy, timedelta(hours=1), 5)
    clock = FakeClock(dummy)
    with RotateLogs(
        str(tmp_path / "log%Y%m%d%H%M%S"),
        clock=clock,
        max_age=timedelta(seconds=-1),
        rotation_count=2,
    ) as rl:
        assert rl.write(b"dummy") == len("dummy")
    assert len(list(tmp_path.glob("log*"))) == 2


def test_log_set_output(tmp_path):
    with RotateLogs(str(tmp_path / "log%Y%m%d%H%M%S")) as rl:
        print("Hello, World", file=rl)
        fn = rl.current_filename()
        content = _read(fn).decode()
    assert fn != ""
    assert "Hello, World" in content


def test_gh_issue16(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    rl = RotateLogs(
        str(tmp_path / "logs" / "log%Y%m%d%H%M%S"),
        link_name="./test.log",
        rotation_time=timedelta(seconds=10),
        rotation_count=3,
        max_age=timedelta(seconds=-1),
    )
    with rl:
        rl.rotate()
        assert os.path.exists(rl.current_filename())
        assert os.readlink("test.log") == rl.current_filename()


def test_rotate_over_unchanged_pattern(tmp_path):
    seen = set()
    with RotateLogs(str(tmp_path / "unchanged-pattern.log")) as rl:
        for i in range(10):
            rl.write(b"Hello, World!")
            rl.rotate()
            fn = os.path.basename(rl.current_filename())
            assert fn.startswith("unchanged-pattern.log")
            rl.write(b"Hello, World!")
            suffix = fn[len("unchanged-pattern.log"):]
            assert suffix == f".{i + 1}"
            assert os.path.getsize(rl.current_filename()) == 13
            assert suffix not in seen
            seen.add(suffix)


def test_rotate_over_pattern_change_every_second(tmp_path):
    clock = FakeClock(datetime(2021, 3, 4, 5, 6, 7))
    with RotateLogs(
        str(tmp_path / "every-second-pattern-%Y%m%d%H%M%S.log"),
        clock=clock,
        rotation_time=timedelta(microseconds=1),
    ) as rl:
        for _ in range(10):
            clock.advance(timedelta(seconds=1))
            rl.write(b"Hello, World!")
            rl.rotate()
            assert rl.current_filename().endswith(".1")


@pytest.mark.parametrize(
    "name, offset",
    [("asia_tokyo", 9), ("pacific_honolulu", -10)],
)
@pytest.mark.parametrize(
    "when, stamp",
    [((2018, 6, 1, 3, 18), "201806010000"), ((2017, 12, 31, 23, 52), "201712310000")],
)
def test_gh_issue23(tmp_path, name, offset, when, stamp):
    tz = timezone(timedelta(hours=offset))
    rl = RotateLogs(
        str(tmp_path / f"{name}.%Y%m%d%H%M.log"),
        clock=lambda: datetime(*when, tzinfo=tz),
    )
    with rl:
        rl.rotate()
        assert rl.current_filename() == str(tmp_path / f"{name}.{stamp}.log")


def test_force_new_file(tmp_path):
    base_fn = str(tmp_path / "force-new-file.log")
    rl = RotateLogs(base_fn, force_new_file=True)
    rl.write(b"Hello, World!")
    rl.close()

    for i in range(10):
        rl = RotateLogs(base_fn, force_new_file=True)
        rl.write(b"Hello, World")
        rl.write(str(i).encode())
        rl.close()

        fn = os.path.basename(rl.current_filename())
        assert fn[len("force-new-file.log"):] == f".{i + 1}"
        assert _read(rl.current_filename()) == f"Hello, World{i}".encode()
        assert _read(base_fn) == b"Hello, World!"


def test_force_new_file_with_rotate(tmp_path):
    base_fn = str(tmp_path / "force-new-file-rotate.log")
    with RotateLogs(base_fn, force_new_file=True) as rl:
        rl.write(b"Hello, World!")
        for i in range(10):
            rl.rotate()
            rl.write(b"Hello, World")
            rl.write(str(i).encode())
            assert _read(rl.current_filename()) == f"Hello, World{i}".encode()
            assert _read(base_fn) == b"Hello, World!"


def test_example_force_new_file(tmp_path):
    log_path = str(tmp_path / "test.log")
    for _ in range(2):
        rl = RotateLogs(log_path, force_new_file=True)
        assert rl.write(b"test") == 4
        rl.close()
    listing = [(p.name, p.stat().st_size) for p in sorted(tmp_path.iterdir())]
    assert listing == [("test.log", 4), ("test.log.1", 4)]


def test_handler_receives_rotation_event(tmp_path):
    received = []
    done = threading.Event()

    def handler(event):
        received.append(event)
        done.set()

    with RotateLogs(str(tmp_path / "app.log"), handler=handler) as rl:
        rl.write(b"x")
        assert done.wait(5)
        assert received[0] == FileRotatedEvent(
            previous_file="", current_file=rl.current_filename()
        )


def test_rotation_by_size(tmp_path):
    with RotateLogs(str(tmp_path / "sized.log"), rotation_size=5) as rl:
        rl.write(b"0123456789")
        first = rl.current_filename()
        rl.write(b"abc")
        assert rl.current_filename() == first + ".1"
        assert _read(first + ".1") == b"abc"


def test_invalid_pattern(tmp_path):
    with pytest.raises(RotateLogsError):
        RotateLogs(str(tmp_path / "log.%Q"))


def test_negative_rotation_count(tmp_path):
    with pytest.raises(ValueError):
        RotateLogs(str(tmp_path / "log"), rotation_count=-1)


def test_write_after_close_fails(tmp_path):
    rl = RotateLogs(str(tmp_path / "closed.log"))
    rl.write(b"a")
    rl.close()
    with pytest.raises(RotateLogsError):
        rl.write(b"b")


def test_clocks():
    assert utc_now().utcoffset() == timedelta(0)
    tokyo = timezone(timedelta(hours=9))
    assert clock_in(tokyo)().utcoffset() == timedelta(hours=9)
    assert abs(local_now().timestamp() - time.time()) < 5