#!/usr/bin/env python3
#
# Copyright 2022 Max Planck Insitute Magdeburg
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
#
#
"""Process pool for independent LP computations and a helper that maps tasks onto it"""

from multiprocessing.pool import Pool
from multiprocessing import get_context
from cobra import Configuration
import os
import sys
import pickle
from os.path import isfile
from platform import system
from tempfile import mkstemp
from typing import Any, Callable, Iterable, List, Optional, Tuple
import logging


def _init_win_worker(filename: str) -> None:
    """Retrieve worker initialization code from a pickle file and call it."""
    with open(filename, mode="rb") as handle:
        func, *args = pickle.load(handle)
    func(*args)


class FBCPool(Pool):
    """Process pool used for FVA and deletion analyses

    Workers are started with the 'spawn' method unless another context is given. On Windows,
    the initializer and its arguments (usually a whole metabolic model) are handed to the
    workers through a pickle file instead of the pipe, which is considerably faster there
    (see https://github.com/opencobra/cobrapy/issues/997).

    While the workers are spawned, the module spec and file of __main__ are hidden, so that
    the workers do not execute the main script of the parent process again.
    """

    def __init__(self,
                 processes: Optional[int] = None,
                 initializer: Optional[Callable] = None,
                 initargs: Tuple = (),
                 maxtasksperchild: Optional[int] = None,
                 context=None):
        self._filename = None
        if initializer is not None and system() == "Windows":
            descriptor, self._filename = mkstemp(suffix=".pkl")
            # write through the descriptor of mkstemp, so that the file is closed and can be removed later
            with os.fdopen(descriptor, mode="wb") as handle:
                pickle.dump((initializer,) + initargs, handle)
            initializer = _init_win_worker
            initargs = (self._filename,)
        main = sys.modules['__main__']
        spec = getattr(main, '__spec__', None)
        file = getattr(main, '__file__', None)
        if context is None:
            context = get_context('spawn')
            if spec:
                main.__spec__ = None
            if file:
                main.__file__ = None
        try:
            super().__init__(
                processes=processes,
                initializer=initializer,
                initargs=initargs,
                maxtasksperchild=maxtasksperchild,
                context=context,
            )
        finally:
            if spec:
                main.__spec__ = spec
            if file:
                main.__file__ = file

    def __exit__(self, *args, **kwargs):
        """Clean up resources when leaving a context"""
        self._clean_up()
        super().__exit__(*args, **kwargs)

    def close(self):
        """Call cleanup function and close"""
        self._clean_up()
        super().close()

    def _clean_up(self):
        """Remove the dump file if it exists"""
        if self._filename is not None and isfile(self._filename):
            os.remove(self._filename)


def num_workers(workers: Optional[int] = None) -> int:
    """Number of worker processes, defaults to the process count of the COBRA configuration"""
    if workers is None:
        workers = Configuration().processes
    return max(1, int(workers))


def map_tasks(compute: Callable[[Any], Tuple[Any, Any]],
              tasks: Iterable,
              workers: Optional[int] = None,
              initializer: Optional[Callable] = None,
              initargs: Tuple = ()) -> List[Tuple[Any, Any]]:
    """Run compute on every task and collect the (key, value) pairs it returns

    With one worker (or a single task) everything runs in the calling process: the initializer is
    called once and the tasks are computed one after another. Otherwise an FBCPool with the given
    initializer is started and the tasks are distributed unordered among its workers. Exceptions
    raised by compute are propagated to the caller.

    Args:
        compute (callable):
            A module-level function taking one task and returning a (key, value) tuple.

        tasks (iterable):
            Picklable task descriptions.

        workers (optional (int)):
            Number of worker processes. (Default: cobra.Configuration().processes)

        initializer, initargs (optional):
            Worker initialization function and its arguments.

    Returns:
        (list of tuple):
            The (key, value) results in no particular order.
    """
    tasks = list(tasks)
    if not tasks:
        return []
    processes = min(num_workers(workers), len(tasks))
    if processes > 1:
        logging.info('  Distributing ' + str(len(tasks)) + ' computations on ' + str(processes) + ' workers.')
        chunk_size = max(1, len(tasks) // (4 * processes))
        with FBCPool(processes, initializer=initializer, initargs=initargs) as pool:
            return list(pool.imap_unordered(compute, tasks, chunksize=chunk_size))
    if initializer is not None:
        initializer(*initargs)
    return [compute(t) for t in tasks]
