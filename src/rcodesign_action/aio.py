#!/usr/bin/env python
"""Async helper functions."""
import asyncio
import logging
import os
import random

import aiohttp

from rcodesign_action.exceptions import Download404, DownloadError
from rcodesign_action.utils import makedirs

log = logging.getLogger(__name__)


# retry_async {{{1
def calculate_sleep_time(attempt, delay_factor=5.0, randomization_factor=0.5, max_delay=120):
    """Calculate the sleep time between retries, in seconds.

    Based off of `taskcluster.utils.calculateSleepTime`, but with kwargs instead
    of constant `delay_factor`/`randomization_factor`/`max_delay`.

    Args:
        attempt (int): the retry attempt number
        delay_factor (float, optional): a multiplier for the delay time.  Defaults to 5.
        randomization_factor (float, optional): a randomization multiplier for the
            delay time.  Defaults to .5.
        max_delay (float, optional): the max delay to sleep.  Defaults to 120 (seconds).

    Returns:
        float: the time to sleep, in seconds.

    """
    if attempt <= 0:
        return 0

    # We subtract one to get exponents: 1, 2, 3, 4, 5, ..
    delay = float(2 ** (attempt - 1)) * float(delay_factor)
    # Apply randomization factor.  Only increase the delay here.
    delay = delay * (randomization_factor * random.random() + 1)
    # Always limit with a maximum delay
    return min(delay, max_delay)


async def retry_async(
    func,
    attempts=5,
    sleeptime_callback=calculate_sleep_time,
    retry_exceptions=(Exception,),
    args=(),
    kwargs=None,
    sleeptime_kwargs=None,
):
    """Retry ``func``, where ``func`` is an awaitable.

    Args:
        func (function): an awaitable function.
        attempts (int, optional): the number of attempts to make.  Default is 5.
        sleeptime_callback (function, optional): the function to use to determine
            how long to sleep after each attempt.  Defaults to ``calculate_sleep_time``.
        retry_exceptions (list or exception, optional): the exception(s) to retry on.
            Defaults to ``Exception``.
        args (list, optional): the args to pass to ``function``.  Defaults to ()
        kwargs (dict, optional): the kwargs to pass to ``function``.  Defaults to
            {}.
        sleeptime_kwargs (dict, optional): the kwargs to pass to ``sleeptime_callback``.
            If None, use {}.  Defaults to None.

    Returns:
        object: the value from a successful ``function`` call

    Raises:
        Exception: the exception from a failed ``function`` call, either outside
            of the retry_exceptions, or one of those if we pass the max
            ``attempts``.

    """
    kwargs = kwargs or {}
    attempt = 1
    while True:
        try:
            return await func(*args, **kwargs)
        except retry_exceptions:
            attempt += 1
            if attempt > attempts:
                log.warning("retry_async: {}: too many retries!".format(func.__name__))
                raise
            sleeptime_kwargs = sleeptime_kwargs or {}
            sleep_time = sleeptime_callback(attempt, **sleeptime_kwargs)
            log.debug("retry_async: {}: sleeping {} seconds before retry".format(func.__name__, sleep_time))
            await asyncio.sleep(sleep_time)


# download_file {{{1
async def _log_download_error(resp, log_url, msg):
    log.debug(msg, {"url": log_url, "status": resp.status, "body": (await resp.text())[:1000]})
    for h in resp.history:
        log.debug(
            "Redirect history %s: %s; body=%s",
            log_url,
            h.status,
            (await h.text())[:1000],
        )


async def download_file(url, abs_filename, log_url=None, chunk_size=128, timeout=300):
    """Download a file, async.

    Args:
        url (str): the url to download
        abs_filename (str): the path to download to
        log_url (str, optional): the url to log, should ``url`` contain sensitive information.
            If ``None``, use ``url``. Defaults to ``None``
        chunk_size (int, optional): the chunk size to read from the response
            at a time. Default is 128.
        timeout (int, optional): seconds to time out the request. Default is 300.

    Raises:
        Download404: if the url returns a 404.
        DownloadError: on any other non-200 status, or a connection error.

    """
    aiohttp_timeout = aiohttp.ClientTimeout(total=timeout)
    log_url = log_url or url
    try:
        async with aiohttp.ClientSession(timeout=aiohttp_timeout) as session:
            log.info("Downloading %s", log_url)
            parent_dir = os.path.dirname(abs_filename)
            async with session.get(url) as resp:
                if resp.status == 404:
                    await _log_download_error(resp, log_url, "404 downloading %(url)s: %(status)s; body=%(body)s")
                    raise Download404("{} status {}!".format(log_url, resp.status))
                elif resp.status != 200:
                    await _log_download_error(
                        resp,
                        log_url,
                        "Failed to download %(url)s: %(status)s; body=%(body)s",
                    )
                    raise DownloadError("{} status {} is not 200!".format(log_url, resp.status))
                makedirs(parent_dir)
                with open(abs_filename, "wb") as fd:
                    while True:
                        chunk = await resp.content.read(chunk_size)
                        if not chunk:
                            break
                        fd.write(chunk)
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        raise DownloadError("Failed to download {}: {}".format(log_url, exc)) from exc
    log.info("Done")
