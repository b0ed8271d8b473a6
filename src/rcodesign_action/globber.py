#!/usr/bin/env python
"""Expand multi-line glob expressions against the filesystem.

Each non-blank line of an expression is a pattern; ``#`` lines are comments
and a leading ``!`` excludes. Patterns are absolute and normalized. Within
a segment ``*``, ``?`` and ``[...]`` behave as in ``fnmatch``; a whole
``**`` segment matches any number of segments.

Attributes:
    log (logging.Logger): the log object for the module
    GLOB_CHARACTERS (tuple): characters that make a segment a wildcard.

"""
import fnmatch
import logging
import os
import stat

import attr

from rcodesign_action.constants import DEFAULT_GLOB_OPTIONS

log = logging.getLogger(__name__)

GLOB_CHARACTERS = ("*", "?", "[")


def has_glob(segment):
    """Return True if ``segment`` contains glob characters."""
    return any(char in segment for char in GLOB_CHARACTERS)


def split_path(path):
    """Split a normalized path on ``os.sep``.

    A trailing separator doesn't add a segment, so ``/`` is ``[""]``.

    """
    segments = path.split(os.sep)
    if len(segments) > 1 and not segments[-1]:
        segments.pop()
    return segments


def join_segments(segments):
    """Join segments from ``split_path``, keeping root and drive separators.

    ``["", "foo"]`` is ``/foo`` and ``[""]`` is ``/``; ``["C:"]`` is ``C:\\``.

    """
    path = os.sep.join(segments)
    if not path or path == os.path.splitdrive(path)[0]:
        path += os.sep
    return path


def _match_segments(pattern_segments, path_segments):
    if not pattern_segments:
        return not path_segments
    head = pattern_segments[0]
    if head == "**":
        return any(_match_segments(pattern_segments[1:], path_segments[index:]) for index in range(len(path_segments) + 1))
    if not path_segments or not fnmatch.fnmatch(path_segments[0], head):
        return False
    return _match_segments(pattern_segments[1:], path_segments[1:])


def _partial_match_segments(pattern_segments, path_segments):
    if not path_segments:
        return True
    if not pattern_segments:
        return False
    head = pattern_segments[0]
    if head == "**":
        return True
    if not fnmatch.fnmatch(path_segments[0], head):
        return False
    return _partial_match_segments(pattern_segments[1:], path_segments[1:])


# Pattern {{{1
@attr.s(frozen=True)
class Pattern(object):
    """A single parsed glob pattern.

    Attributes:
        segments (tuple): the normalized absolute pattern, split on ``os.sep``.
        negate (bool): if True, matching items are excluded.
        directories_only (bool): the pattern had a trailing separator, so
            it only matches directories itself.

    """

    segments = attr.ib(converter=tuple)
    negate = attr.ib(default=False)
    directories_only = attr.ib(default=False)

    @classmethod
    def from_string(cls, pattern, cwd=None):
        """Parse one line of a glob expression.

        Args:
            pattern (str): the stripped pattern line.
            cwd (str, optional): the directory relative patterns are rooted
                at. If ``None``, use ``os.getcwd()``. Defaults to ``None``.

        Returns:
            Pattern: the parsed pattern.

        Raises:
            ValueError: if the pattern is empty.

        """
        negate = False
        while pattern.startswith("!"):
            negate = not negate
            pattern = pattern[1:].strip()
        if not pattern:
            raise ValueError("Empty glob pattern")
        directories_only = pattern.endswith(("/", os.sep))
        pattern = os.path.expanduser(pattern)
        if not os.path.isabs(pattern):
            pattern = os.path.join(cwd or os.getcwd(), pattern)
        pattern = os.path.normpath(pattern)
        return cls(segments=split_path(pattern), negate=negate, directories_only=directories_only)

    @property
    def search_path(self):
        """The literal leading part of the pattern, where walking starts."""
        literal = []
        for segment in self.segments:
            if has_glob(segment):
                break
            literal.append(segment)
        return join_segments(literal)

    def match(self, path, is_directory=True, implicit_descendants=True):
        """Return True if ``path`` matches this pattern.

        Args:
            path (str): a normalized absolute path.
            is_directory (bool, optional): whether ``path`` is a directory.
                Defaults to True.
            implicit_descendants (bool, optional): whether descendants of
                a match also match. Defaults to True.

        """
        path_segments = split_path(path)
        if _match_segments(self.segments, path_segments):
            return is_directory or not self.directories_only
        return implicit_descendants and _match_segments(self.segments + ("**",), path_segments)

    def partial_match(self, path):
        """Return True if something below directory ``path`` could match."""
        return _partial_match_segments(self.segments, split_path(path))


def get_default_glob_options():
    """Return a fresh copy of ``DEFAULT_GLOB_OPTIONS``."""
    return dict(DEFAULT_GLOB_OPTIONS)


# Globber {{{1
class Globber(object):
    """Expand a set of patterns against the filesystem.

    Attributes:
        patterns (list): the ``Pattern`` objects, in expression order.
        options (dict): ``follow_symbolic_links``, ``implicit_descendants``
            and ``omit_broken_symbolic_links``.

    """

    def __init__(self, patterns, options=None):
        self.patterns = list(patterns)
        self.options = get_default_glob_options()
        self.options.update(options or {})

    @classmethod
    def create(cls, expression, options=None, cwd=None):
        """Parse a multi-line glob expression.

        Args:
            expression (str): one pattern per line.
            options (dict, optional): glob options. Unset options use
                ``DEFAULT_GLOB_OPTIONS``. Defaults to ``None``.
            cwd (str, optional): the directory relative patterns are rooted
                at. Defaults to ``None``.

        Returns:
            Globber: the globber.

        """
        patterns = []
        for line in expression.splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            patterns.append(Pattern.from_string(line, cwd=cwd))
        return cls(patterns, options=options)

    @property
    def include_patterns(self):
        return [pattern for pattern in self.patterns if not pattern.negate]

    def get_search_paths(self):
        """Return the distinct search paths of the include patterns.

        A search path that has another search path as an ancestor is
        dropped, since walking the ancestor covers it.

        Returns:
            list: the search paths, in pattern order.

        """
        candidates = {os.path.normcase(pattern.search_path) for pattern in self.include_patterns}
        included = set()
        search_paths = []
        for pattern in self.include_patterns:
            search_path = pattern.search_path
            key = os.path.normcase(search_path)
            if key in included:
                continue
            parent = os.path.dirname(key)
            has_ancestor = False
            while parent != key:
                if parent in candidates:
                    has_ancestor = True
                    break
                key, parent = parent, os.path.dirname(parent)
            if not has_ancestor:
                search_paths.append(search_path)
                included.add(os.path.normcase(search_path))
        return search_paths

    def is_match(self, path, is_directory):
        """Return True if the last pattern that matches ``path`` is an include."""
        matched = False
        for pattern in self.patterns:
            if pattern.match(path, is_directory=is_directory, implicit_descendants=self.options["implicit_descendants"]):
                matched = not pattern.negate
        return matched

    def _should_descend(self, path):
        for pattern in self.include_patterns:
            if pattern.partial_match(path):
                return True
            if self.options["implicit_descendants"] and pattern.match(path):
                return True
        return False

    def _stat(self, path):
        if not self.options["follow_symbolic_links"]:
            return os.lstat(path)
        try:
            return os.stat(path)
        except FileNotFoundError:
            if os.path.islink(path) and self.options["omit_broken_symbolic_links"]:
                log.debug("Broken symlink '%s'", path)
                return None
            raise

    def _walk(self, path, traversal_chain):
        stats = self._stat(path)
        if stats is None:
            return
        if not stat.S_ISDIR(stats.st_mode):
            yield path, False
            return
        if self.options["follow_symbolic_links"]:
            realpath = os.path.realpath(path)
            if realpath in traversal_chain:
                log.warning("Symlink cycle detected for path '%s' and realpath '%s'", path, realpath)
                return
            traversal_chain = traversal_chain | {realpath}
        yield path, True
        if not self._should_descend(path):
            return
        for name in sorted(os.listdir(path)):
            yield from self._walk(os.path.join(path, name), traversal_chain)

    def glob(self):
        """Walk the search paths and return the matching paths.

        Returns:
            list: absolute paths (files and directories), deduplicated, in
                walk order.

        Raises:
            OSError: on filesystem errors, including a broken symlink when
                ``omit_broken_symbolic_links`` is False.

        """
        results = []
        seen = set()
        for search_path in self.get_search_paths():
            log.debug("Search path '%s'", search_path)
            if not os.path.lexists(search_path):
                continue
            for path, is_directory in self._walk(search_path, frozenset()):
                key = os.path.normcase(path)
                if key in seen:
                    continue
                if self.is_match(path, is_directory):
                    seen.add(key)
                    results.append(path)
        return results
