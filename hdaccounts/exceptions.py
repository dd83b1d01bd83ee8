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

class NotEnoughFunds(Exception):
    pass


class DerivationError(Exception):
    '''A key or index could not be used to derive the expected key hierarchy.

    Raised for corrupt or wrongly typed account keys and for malformed persisted indexes. No
    partial account is usable after this is raised during a restore.
    '''


class SerializationError(Exception):
    '''A persisted document is missing a required field or has a field of the wrong type.'''

    def __init__(self, field_name: str, context: str) -> None:
        super().__init__(field_name, context)
        self.field_name = field_name
        self.context = context

    def __str__(self) -> str:
        return "{}: missing or invalid field '{}'".format(self.context, self.field_name)


class AddressExhaustedError(Exception):
    '''There is no unused address left in a chain.

    This should not happen if the margins are maintained, and handing out a used address in
    its place would break the expectation that each address is only paid once.
    '''
    def __str__(self) -> str:
        return "no unused address available"


class UnsafeExtendError(Exception):
    def __init__(self, requested_count: int, margin_size: int, minimum_gap: int) -> None:
        super().__init__(requested_count, margin_size, minimum_gap)
        self.requested_count = requested_count
        self.margin_size = margin_size
        self.minimum_gap = minimum_gap

    def __str__(self) -> str:
        return ("cannot hand out {} addresses from a margin of {} and keep {} unused"
            .format(self.requested_count, self.margin_size, self.minimum_gap))


class ScriptParseError(Exception):
    '''An output script is neither pay-to-public-key nor pay-to-public-key-hash.'''


class WalletLoadError(Exception):
    pass
