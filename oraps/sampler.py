"""Process table sampling for oraps."""

import subprocess

from oraps.types import ProcessSample, SkippedLine, SkipReason

PS_COMMAND = ["ps", "-eo", "pid,pcpu,pmem,comm", "--sort=-pcpu"]


def parse_ps_line(line: str, command_width: int = 20) -> ProcessSample | SkippedLine:
    """Parse one line of ps output into a sample, or explain why it was skipped."""
    parts = line.split(None, 3)
    if len(parts) < 4:
        return SkippedLine(line=line, reason=SkipReason.TOO_FEW_FIELDS)

    pid, cpu, mem, command = parts
    if not pid.isascii() or not pid.isdigit():
        return SkippedLine(line=line, reason=SkipReason.NON_NUMERIC_PID)

    return ProcessSample(
        pid=int(pid),
        cpu_percent=cpu,
        mem_percent=mem,
        command=command.strip()[:command_width],
    )


def _cpu_key(sample: ProcessSample) -> float:
    try:
        return float(sample.cpu_percent)
    except ValueError:
        return 0.0


def parse_ps_output(
    output: str, top: int, command_width: int = 20
) -> list[ProcessSample]:
    samples: list[ProcessSample] = []
    # First line is the ps header (PID %CPU %MEM COMMAND)
    for line in output.splitlines()[1:]:
        parsed = parse_ps_line(line, command_width)
        if isinstance(parsed, ProcessSample):
            samples.append(parsed)

    # Not every ps honours --sort
    samples.sort(key=_cpu_key, reverse=True)
    return samples[:top]


def sample_processes(top: int, command_width: int = 20) -> list[ProcessSample]:
    """Return the top CPU consumers as reported by ps.

    Raises:
        subprocess.CalledProcessError: If ps exits non-zero
        FileNotFoundError: If ps is not installed
    """
    result = subprocess.run(PS_COMMAND, capture_output=True, text=True, check=True)
    return parse_ps_output(result.stdout, top, command_width)
