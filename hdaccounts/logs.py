# ElectrumSV - lightweight Bitcoin SV client
# Copyright (C) 2019-2020 The ElectrumSV Developers
#
# Permission is hereby granted, free of charge, to any person
# obtaining a copy of this software and associated documentation files
# (the "Software"), to deal in the Software without restriction,
# including without limitation the rights to use, copy, modify, merge,
# publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so,
# subject to the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS
# BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN
# ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN
# CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

'''Logging for the hdaccounts package.

Everything logs under the `hdaccounts` logger and nothing touches the root logger, so the host
wallet engine keeps control of its own logging configuration. Output is only attached here when
the host asks for it, otherwise records propagate to whatever the host has configured.
'''

import logging
from typing import Optional, TextIO, Union


PACKAGE_LOGGER_NAME = 'hdaccounts'
LOG_FORMAT = '%(asctime)s:' + logging.BASIC_FORMAT


class Logs(object):

    def __init__(self) -> None:
        self.package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
        self.package_logger.addHandler(logging.NullHandler())
        self.stream_handler: Optional[logging.StreamHandler] = None
        self.file_handler: Optional[logging.FileHandler] = None

    def add_handler(self, handler: logging.Handler) -> None:
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        self.package_logger.addHandler(handler)

    def remove_handler(self, handler: logging.Handler) -> None:
        self.package_logger.removeHandler(handler)

    def add_file_output(self, path: str) -> None:
        # One log file at a time.
        self.remove_file_output()
        self.file_handler = logging.FileHandler(path, encoding='utf-8')
        self.add_handler(self.file_handler)

    def remove_file_output(self) -> None:
        if self.file_handler is not None:
            self.remove_handler(self.file_handler)
            self.file_handler.close()
            self.file_handler = None

    def set_stream_output(self, stream: TextIO) -> None:
        if self.stream_handler is None:
            self.stream_handler = logging.StreamHandler(stream)
            self.add_handler(self.stream_handler)
        else:
            self.stream_handler.setStream(stream)

    def remove_stream_output(self) -> None:
        if self.stream_handler is not None:
            self.remove_handler(self.stream_handler)
            self.stream_handler = None

    def get_logger(self, name: str) -> logging.Logger:
        '''Loggers are children of the package logger, `chain` becomes `hdaccounts.chain`.'''
        return self.package_logger.getChild(name)

    def set_level(self, level: Union[str, int]) -> None:
        '''Level can be a string, such as "info", or a constant from logging module.'''
        if isinstance(level, str):
            level = level.upper()
        self.package_logger.setLevel(level)

    def level(self) -> int:
        return self.package_logger.getEffectiveLevel()

    def is_debug_level(self) -> bool:
        return self.level() == logging.DEBUG


logs = Logs()
