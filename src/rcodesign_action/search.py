#!/usr/bin/env python
"""Find the files to sign, and the root directory they're relative to.

Attributes:
    log (logging.Logger): the log object for the module

"""
import logging
import os
import stat
import sys

import attr

from rcodesign_action.globber import Globber, get_default_glob_options

log = logging.getLogger(__name__)


# SearchResult {{{1
@attr.s(frozen=True)
class SearchResult(object):
    """The files found for a search path expression.

    Attributes:
        files_to_sign (list): the matched non-directory paths, in glob order.
        root_directory (str): the directory the artifact's structure is
            relative to. ``None`` if no search paths were used.

    """

    files_to_sign = attr.ib(factory=list)
    root_directory = attr.ib(default=None)


# get_multi_path_lca {{{1
def get_multi_path_lca(search_paths):
    """Return the least common ancestor (LCA) of ``search_paths``.

    If multiple search paths are used, their LCA controls the directory
    structure of the artifact.

    Example 1: ``/foo/`` and ``/bar/`` return ``/``

    Example 2: ``/home/foo/bar/*``, ``/home/foo/voo/two/*`` and ``/home/foo/mo/``
    return ``/home/foo``

    Paths are compared segment by segment, so ``/foo/ba`` and ``/foo/bar``
    return ``/foo``.

    Args:
        search_paths (list): at least two paths.

    Returns:
        str: the common ancestor, or ``""`` if there isn't one.

    Raises:
        ValueError: if fewer than two paths are given.

    """
    if len(search_paths) < 2:
        raise ValueError("At least two search paths must be provided")

    common_paths = []
    split_paths = []
    smallest_path_length = sys.maxsize

    for search_path in search_paths:
        log.debug("Using search path %s", search_path)
        split_search_path = os.path.normpath(search_path).split(os.sep)
        # don't compare past the end of the shortest path
        smallest_path_length = min(smallest_path_length, len(split_search_path))
        split_paths.append(split_search_path)

    # keep the leading separator of root-anchored paths
    if search_paths[0].startswith(os.sep):
        common_paths.append(os.sep)

    for index in range(smallest_path_length):
        segment = split_paths[0][index]
        if any(split_path[index] != segment for split_path in split_paths[1:]):
            break
        common_paths.append(segment)

    if not common_paths:
        return ""
    # os.path.join("C:", "foo") is the drive-relative "C:foo"
    if common_paths[0] == os.path.splitdrive(common_paths[0])[0] != "":
        common_paths[0] += os.sep
    return os.path.join(*common_paths)


# find_files_to_sign {{{1
def find_files_to_sign(search_path, glob_options=None):
    """Expand ``search_path`` and compute the root directory of the matches.

    Directories are dropped from the matches. The root directory is:

    * the LCA of the search paths, if more than one was used;
    * the parent directory of the file, if a single literal file path was
      given (the directory structure isn't preserved);
    * otherwise the single search path.

    Args:
        search_path (str): the search path expression, one pattern per line.
        glob_options (dict, optional): options for ``Globber``. If ``None``,
            use ``get_default_glob_options()``. Defaults to ``None``.

    Returns:
        SearchResult: the files and root directory. ``files_to_sign`` is
            empty if nothing matched.

    Raises:
        OSError: on filesystem errors during expansion or stat.

    """
    search_results = []
    globber = Globber.create(search_path, glob_options or get_default_glob_options())
    raw_search_results = globber.glob()

    # The artifact store is case insensitive; A.txt would overwrite a.txt.
    lowercase_paths = set()

    for search_result in raw_search_results:
        # os.lstat would not see a symlinked directory as a directory; follow links.
        if stat.S_ISDIR(os.stat(search_result).st_mode):
            log.debug("Removing %s from the search results because it is a directory", search_result)
            continue
        log.debug("File %s was found using the provided search path", search_result)
        search_results.append(search_result)
        if search_result.lower() in lowercase_paths:
            log.warning(
                "Uploads are case insensitive: %s was detected that it will be overwritten by another file with the same path",
                search_result,
            )
        else:
            lowercase_paths.add(search_result.lower())

    search_paths = globber.get_search_paths()
    if not search_paths:
        return SearchResult(files_to_sign=search_results)

    if len(search_paths) > 1:
        log.info("Multiple search paths detected. Calculating the least common ancestor of all paths")
        lca_search_path = get_multi_path_lca(search_paths)
        log.info("The least common ancestor is %s. This will be the root directory of the artifact", lca_search_path)
        return SearchResult(files_to_sign=search_results, root_directory=lca_search_path)

    # A single file given without a directory or wildcard keeps no structure.
    if len(search_results) == 1 and search_paths[0] == os.path.normpath(search_results[0]):
        return SearchResult(files_to_sign=search_results, root_directory=os.path.dirname(search_results[0]))

    return SearchResult(files_to_sign=search_results, root_directory=search_paths[0])
