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

from typing import Dict, Type, Union

from bitcoinx import Bitcoin, BitcoinRegtest, BitcoinTestnet


class SVMainnet(object):
    ADDRTYPE_P2PKH = 0
    NAME = 'mainnet'
    WIF_PREFIX = 0x80
    COIN = Bitcoin
    BIP44_COIN_TYPE = 0


class SVTestnet(object):
    ADDRTYPE_P2PKH = 111
    NAME = 'testnet'
    WIF_PREFIX = 0xef
    COIN = BitcoinTestnet
    BIP44_COIN_TYPE = 1


class SVRegTestnet(object):
    ADDRTYPE_P2PKH = 111
    NAME = 'regtest'
    WIF_PREFIX = 0xef
    COIN = BitcoinRegtest
    BIP44_COIN_TYPE = 1


NetworkClass = Union[Type[SVMainnet], Type[SVTestnet], Type[SVRegTestnet]]

NETWORKS: Dict[str, NetworkClass] = {
    network.NAME: network for network in (SVMainnet, SVTestnet, SVRegTestnet)
}


def network_for_name(name: str) -> NetworkClass:
    try:
        return NETWORKS[name]
    except KeyError:
        raise ValueError("unknown network '{}'".format(name)) from None


class _CurrentNetMeta(type):

    def __getattr__(cls, attr):
        return getattr(cls._net, attr)


class Net(metaclass=_CurrentNetMeta):
    '''The current selected network.

    Use like so:

        from hdaccounts.networks import Net, SVTestnet
        Net.set_to(SVTestnet)
    '''

    _net: NetworkClass = SVMainnet

    @classmethod
    def set_to(cls, net_class: NetworkClass) -> None:
        cls._net = net_class

    @classmethod
    def is_mainnet(cls) -> bool:
        return cls._net == SVMainnet

    @classmethod
    def is_testnet(cls) -> bool:
        return cls._net == SVTestnet

    @classmethod
    def is_regtest(cls) -> bool:
        return cls._net == SVRegTestnet
