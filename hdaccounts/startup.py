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

from .logs import logs
from .networks import Net, network_for_name
from .simple_config import SimpleConfig


logger = logs.get_logger("startup")


def configure(config: SimpleConfig) -> None:
    '''Apply the process wide settings: the logging level and output, and the network.

    This has to happen before any accounts are created or restored, as address rendering and
    BIP44 account derivation depend on the selected network.
    '''
    logs.set_level(config.get_log_level())
    log_path = config.get_log_path()
    if log_path is not None:
        logs.add_file_output(log_path)

    network = network_for_name(config.get_network())
    Net.set_to(network)
    logger.debug("network %s", network.NAME)
