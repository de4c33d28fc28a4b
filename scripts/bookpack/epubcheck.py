"""
EPUB validation via epubcheck.

Locates epubcheck (env var, PATH, tools/ dir, or ~/), runs it against a
built package, and reports the message counts it prints.
"""

import os
import re
import shutil
import subprocess
from collections import namedtuple


SUMMARY = re.compile(r"Messages:\s*(\d+)\s*fatal.*?(\d+)\s*error.*?(\d+)\s*warn", re.DOTALL)

CheckSummary = namedtuple("CheckSummary", ["fatals", "errors", "warnings"])


def find_epubcheck():
    """
    Locate epubcheck. Checks in order:
        1. EPUBCHECK_JAR environment variable
        2. epubcheck command on PATH
        3. tools/epubcheck*/epubcheck.jar under the working directory
        4. ~/epubcheck*/epubcheck.jar

    Returns: the command prefix to run (a list), or None.
    """
    env_jar = os.environ.get("EPUBCHECK_JAR")
    if env_jar and os.path.exists(env_jar):
        return ["java", "-jar", env_jar]

    command = shutil.which("epubcheck")
    if command:
        return [command]

    for search_root in [os.path.join(os.getcwd(), "tools"), os.path.expanduser("~")]:
        if not os.path.isdir(search_root):
            continue
        # Newest version first when several are unpacked side by side
        for entry in sorted(os.listdir(search_root), reverse=True):
            if entry.startswith("epubcheck"):
                jar = os.path.join(search_root, entry, "epubcheck.jar")
                if os.path.exists(jar):
                    return ["java", "-jar", jar]

    return None


def parse_summary(output):
    """Pull the fatal/error/warning counts out of epubcheck's output."""
    match = SUMMARY.search(output)
    if not match:
        return None
    return CheckSummary(*(int(group) for group in match.groups()))


def validate_epub(epub_path, verbose=False, json_report=None):
    """
    Run epubcheck on an epub file.

    Args:
        epub_path:   Path to the .epub file
        verbose:     Show individual messages even when valid
        json_report: Path for a JSON report, or True for auto-naming

    Returns:
        True if valid, False if errors, None if epubcheck is unavailable.
    """
    command = find_epubcheck()
    if command is None:
        if verbose:
            print("  Skipping validation: epubcheck not found")
            print("  Install it, or point EPUBCHECK_JAR at epubcheck.jar")
        return None

    cmd = command + [epub_path]
    if json_report:
        if json_report is True:
            json_report = os.path.splitext(epub_path)[0] + "_epubcheck.json"
        cmd.extend(["--json", json_report])

    if verbose:
        print("  Validating with epubcheck...")

    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as e:
        print(f"  Warning: Could not run epubcheck: {e}")
        return None

    output = result.stdout + result.stderr
    summary = parse_summary(output)

    if summary is None:
        if result.returncode == 0:
            print("  ✓ epubcheck: valid")
        else:
            print(f"  ✗ epubcheck: failed (exit code {result.returncode})")
    elif summary.fatals == 0 and summary.errors == 0:
        if summary.warnings:
            print(f"  ⚠ epubcheck: valid with {summary.warnings} warning(s)")
        else:
            print("  ✓ epubcheck: valid (no errors, no warnings)")
    else:
        print(
            f"  ✗ epubcheck: {summary.fatals} fatal, "
            f"{summary.errors} error(s), {summary.warnings} warning(s)"
        )

    if verbose or result.returncode != 0:
        for line in output.splitlines():
            if line.startswith(("ERROR", "WARNING", "FATAL")):
                print(f"    {line}")

    if json_report and os.path.exists(json_report):
        print(f"  Report: {json_report}")

    return result.returncode == 0
