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

from collections import defaultdict
from typing import Any, Callable, Dict, List, NamedTuple, Sequence, Set, TypeVar

from bitcoinx import sha256

from .bitcoin import COIN
from .exceptions import NotEnoughFunds
from .logs import logs
from .types import CoinSelection, SpendableOutput


T = TypeVar("T")


logger = logs.get_logger("coinchooser")


class Bucket(NamedTuple):
    desc: bytes
    value: int
    coins: List[SpendableOutput]

SufficientFundsCheck = Callable[[List[Bucket]], bool]
BucketPenaltyFunction = Callable[[List[Bucket]], float]


# A simple deterministic PRNG.  Used to deterministically shuffle a
# set of coins - the same set of coins should produce the same output.
# Although choosing UTXOs "randomly" we want it to be deterministic,
# so if sending twice from the same UTXO set we choose the same UTXOs
# to spend.  This prevents attacks on users by malicious or stale
# servers.
class PRNG:
    def __init__(self, seed: bytes) -> None:
        self.sha = sha256(seed)
        self.pool = bytearray()

    def get_bytes(self, n: int) -> bytes:
        while len(self.pool) < n:
            self.pool.extend(self.sha)
            self.sha = sha256(self.sha)
        result, self.pool = self.pool[:n], self.pool[n:]
        return bytes(result)

    def randint(self, start: int, end: int) -> int:
        # Returns random integer in [start, end)
        n = end - start
        r = 0
        p = 1
        while p < n:
            r = self.get_bytes(1)[0] + (r << 8)
            p = p << 8
        return start + (r % n)

    def choice(self, seq: Sequence[T]) -> T:
        return seq[self.randint(0, len(seq))]

    def shuffle(self, x: List[Any]) -> None:
        for i in reversed(range(1, len(x))):
            # pick an element in x[:i+1] with which to exchange x[i]
            j = self.randint(0, i+1)
            x[i], x[j] = x[j], x[i]


def strip_unneeded_coins(bkts: List[Bucket], sufficient_funds: SufficientFundsCheck) \
        -> List[Bucket]:
    '''Remove buckets that are unnecessary in achieving the spend amount'''
    bkts = sorted(bkts, key = lambda bkt: bkt.value)
    for i in range(len(bkts)):
        if not sufficient_funds(bkts[i + 1:]):
            return bkts[i:]
    # Only reached for a zero target, where no buckets are needed.
    return []


class CoinChooserBase:
    '''Picks a subset of candidate outputs worth at least a target value.

    The chooser knows nothing about which account the outputs belong to, that scoping is done
    by the caller before the candidates are passed in.
    '''

    def keys(self, coins: List[SpendableOutput]) -> List[bytes]:
        # Coins paying to the same output script are paying to the same key, and spending only
        # some of them links the rest to this spend anyway.
        return [ coin.script_pubkey for coin in coins ]

    def bucketize_coins(self, coins: List[SpendableOutput]) -> List[Bucket]:
        buckets: Dict[bytes, List[SpendableOutput]] = defaultdict(list)
        for key, coin in zip(self.keys(coins), coins):
            buckets[key].append(coin)

        def make_Bucket(desc: bytes, coins: List[SpendableOutput]) -> Bucket:
            return Bucket(desc, sum(coin.value for coin in coins), coins)

        return [make_Bucket(key, value) for key, value in buckets.items()]

    def create_penalty_function(self, _target: int) -> BucketPenaltyFunction:
        def penalty(_candidates: List[Bucket]) -> float:
            return 0.0
        return penalty

    def select(self, target: int, coins: Sequence[SpendableOutput]) -> CoinSelection:
        if target < 0:
            raise ValueError("negative target value {}".format(target))
        coins = list(coins)

        # Deterministic randomness from coins
        self.p = PRNG(b''.join(sorted(c.prevout_bytes() for c in coins)))

        def sufficient_funds(buckets: List[Bucket]) -> bool:
            return sum(bucket.value for bucket in buckets) >= target

        buckets = self.bucketize_coins(coins)
        if not sufficient_funds(buckets):
            raise NotEnoughFunds()
        buckets = self.choose_buckets(buckets, sufficient_funds,
            self.create_penalty_function(target))

        gathered = [ coin for bucket in buckets for coin in bucket.coins ]
        logger.debug("using %d coins from %d buckets", len(gathered), len(buckets))
        return CoinSelection(sum(coin.value for coin in gathered), gathered)

    def choose_buckets(self, buckets: List[Bucket], sufficient_funds: SufficientFundsCheck,
            penalty_func: BucketPenaltyFunction) -> List[Bucket]:
        raise NotImplementedError('To be subclassed')


class CoinChooserRandom(CoinChooserBase):

    def create_bucket_groupings(self, buckets: List[Bucket],
            sufficient_funds_check: SufficientFundsCheck) -> List[List[Bucket]]:
        '''Returns a list of bucket sets.'''
        valid_bucket_combinations: Set[Sequence[int]] = set()

        # Add all singletons
        for n, bucket in enumerate(buckets):
            if sufficient_funds_check([bucket]):
                valid_bucket_combinations.add((n, ))

        # And now some random ones
        attempts = min(100, (len(buckets) - 1) * 10 + 1)
        permutation = list(range(len(buckets)))
        for _i in range(attempts):
            # Get a random permutation of the buckets, and
            # incrementally combine buckets until sufficient
            self.p.shuffle(permutation)
            bkts = []
            for count, index in enumerate(permutation):
                bkts.append(buckets[index])
                if sufficient_funds_check(bkts):
                    valid_bucket_combinations.add(tuple(sorted(permutation[:count + 1])))
                    break
            else:
                raise NotEnoughFunds()

        valid_bucket_groupings = [ [ buckets[n] for n in c ] for c in valid_bucket_combinations ]
        return [ strip_unneeded_coins(c, sufficient_funds_check) for c in valid_bucket_groupings ]

    def choose_buckets(self, buckets: List[Bucket], sufficient_funds: SufficientFundsCheck,
            penalty_func: BucketPenaltyFunction) -> List[Bucket]:
        if sufficient_funds([]):
            return []
        candidate_groupings = self.create_bucket_groupings(buckets, sufficient_funds)
        penalties = [penalty_func(grouping) for grouping in candidate_groupings]
        winner = candidate_groupings[penalties.index(min(penalties))]
        logger.debug("Bucket sets: %d", len(buckets))
        logger.debug("Winning penalty: %s", min(penalties))
        return winner


class CoinChooserPrivacy(CoinChooserRandom):
    '''Attempts to better preserve user privacy.  First, if any coin is spent from a user
    address, all coins are.  Compared to spending from other addresses to make up an
    amount, this reduces information leakage about sender holdings.  It also helps to
    reduce future privacy loss that would come from reusing that address' remaining UTXOs.
    Second, it penalizes change that is quite different to the sent amount.  Third, it
    penalizes change that is too big.
    '''

    def create_penalty_function(self, target: int) -> BucketPenaltyFunction:
        max_change = target * 1.5

        def penalty(buckets: List[Bucket]) -> float:
            badness: float = len(buckets) - 1
            total_input = sum(bucket.value for bucket in buckets)
            change = float(total_input - target)
            # Penalize change not roughly in output range
            if change > max_change:
                badness += (change - max_change) / (max_change + 10000)
                # Penalize large change; 5 BSV excess ~= using 1 more input
                badness += change / (COIN * 5)
            return badness

        return penalty
