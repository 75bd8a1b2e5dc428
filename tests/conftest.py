"""
Shared fixtures for unit tests.
"""

import signal
import tempfile

import pytest

import lector.process_controller as process_controller
from lector.process_controller import ProcessState


class FakeProcess:
    """Stand-in for subprocess.Popen backed by FakeOS."""

    def __init__(self, fake_os, argv, pid):
        self.fake_os = fake_os
        self.args = argv
        self.pid = pid
        self.returncode = None

    def poll(self):
        if self.fake_os.status.get(self.pid) is ProcessState.TERMINATED and self.returncode is None:
            self.returncode = 0
        return self.returncode

    def kill(self):
        if self.poll() is not None:
            return
        self.fake_os.status[self.pid] = ProcessState.TERMINATED
        self.returncode = -9

    def wait(self, timeout=None):
        return self.poll()


class FakeOS:
    """Records spawned processes and signals, and answers status queries."""

    def __init__(self):
        self.status = {}
        self.signals = []
        self.spawned = []
        self._next_pid = 4242

    def popen(self, argv, **kwargs):
        process = FakeProcess(self, list(argv), self._next_pid)
        self._next_pid += 1
        self.spawned.append((process, kwargs))
        self.status[process.pid] = ProcessState.RUNNING
        return process

    def kill(self, pid, signum):
        if self.status.get(pid, ProcessState.TERMINATED) is ProcessState.TERMINATED:
            raise ProcessLookupError(pid)
        self.signals.append((pid, signum))
        if signum == getattr(signal, "SIGSTOP", None):
            self.status[pid] = ProcessState.PAUSED
        elif signum == getattr(signal, "SIGCONT", None):
            self.status[pid] = ProcessState.RUNNING
        else:
            self.status[pid] = ProcessState.TERMINATED

    def process_status(self, pid, process=None):
        if process is not None and process.poll() is not None:
            return ProcessState.TERMINATED
        return self.status.get(pid, ProcessState.TERMINATED)

    def finish(self, pid):
        """Simulate the engine exiting on its own."""
        self.status[pid] = ProcessState.TERMINATED

    @property
    def last_argv(self):
        return self.spawned[-1][0].args


@pytest.fixture
def fake_os(monkeypatch, tmp_path):
    """Replace process creation, signalling and status queries with FakeOS."""
    fake = FakeOS()
    monkeypatch.setattr(process_controller.subprocess, "Popen", fake.popen)
    monkeypatch.setattr(process_controller.os, "kill", fake.kill)
    monkeypatch.setattr(process_controller, "process_status", fake.process_status)
    # Keep spill files inside the test directory
    monkeypatch.setattr(tempfile, "tempdir", str(tmp_path))
    return fake


@pytest.fixture
def state_dir(monkeypatch, tmp_path):
    """Point the persisted handle at a temporary XDG state directory."""
    directory = tmp_path / "state"
    monkeypatch.setenv("XDG_STATE_HOME", str(directory))
    return directory / "lector"


@pytest.fixture
def cli_runner():
    """Provide Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


def create_test_epub(title, author, pages, output_path):
    """
    Create minimal valid EPUB for testing.

    Args:
        title: Book title
        author: Book author
        pages: List of (page_title, content) tuples
        output_path: Path to save EPUB
    """
    from ebooklib import epub

    book = epub.EpubBook()
    book.set_title(title)
    book.set_language("en")
    book.add_author(author)

    epub_pages = []
    for i, (page_title, content) in enumerate(pages, 1):
        item = epub.EpubHtml(title=page_title, file_name=f"page_{i:02d}.xhtml", lang="en")
        item.content = f"""
        <html>
        <head><title>{page_title}</title></head>
        <body>
            <h1>{page_title}</h1>
            <p>{content}</p>
        </body>
        </html>
        """
        book.add_item(item)
        epub_pages.append(item)

    book.toc = list(epub_pages)
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())
    book.spine = ["nav"] + epub_pages

    epub.write_epub(str(output_path), book)
    return output_path


@pytest.fixture
def simple_test_epub(tmp_path):
    """Create a three-page test EPUB."""
    pages = [
        (
            "Introduction",
            "This introduction gives an overview of the book and sets the stage for what follows. "
            * 3,
        ),
        (
            "Main Content",
            "The main content has enough text to pass the minimum page length. "
            "Details live at https://www.example.com/details for the curious. " * 3,
        ),
        (
            "Conclusion",
            "The conclusion wraps up the main points and offers final thoughts on the subject. "
            * 3,
        ),
    ]
    return create_test_epub("Test Book", "Test Author", pages, tmp_path / "test_simple.epub")


@pytest.fixture
def make_epub():
    """Provide the EPUB builder to tests needing custom pages."""
    return create_test_epub
