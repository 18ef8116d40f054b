import logging
from collections import defaultdict

import numpy as np
import awkward as ak

logger = logging.getLogger(__name__)


def _check_edges(edges, name):
    edges = np.asarray(edges, dtype=np.float64)
    if edges.ndim != 1 or len(edges) < 2:
        raise ValueError(f"[ERROR] {name} needs at least two bin edges, got {edges.tolist()}")
    if np.any(np.diff(edges) <= 0):
        raise ValueError(f"[ERROR] {name} must be strictly increasing, got {edges.tolist()}")
    return edges


class MixingBinning:
    '''
    Event-similarity classes from variable-width (vertex z, multiplicity) edges.

    With n edges an axis has n - 1 inner bins. Values below the first or above
    the last edge land in open-ended outer bins, unless ignore_overflows is set,
    in which case those events get bin -1 and are never mixed.
    '''

    def __init__(self, vtx_edges, mult_edges, ignore_overflows=False):
        self.vtx_edges = _check_edges(vtx_edges, "Vertex-z mixing bins")
        self.mult_edges = _check_edges(mult_edges, "Multiplicity mixing bins")
        self.ignore_overflows = ignore_overflows

    def _axis_index(self, values, edges):
        # 0 = underflow, 1..n-1 = inner bins, n = overflow
        idx = np.searchsorted(edges, values, side="right")
        if self.ignore_overflows:
            outside = (values < edges[0]) | (values >= edges[-1])
            idx = np.where(outside, -1, idx - 1)
        return idx

    @property
    def shape(self):
        extra = 0 if self.ignore_overflows else 2
        return (len(self.vtx_edges) - 1 + extra, len(self.mult_edges) - 1 + extra)

    def bin_index(self, posz, mult):
        '''Flat bin index per event, -1 for events excluded from mixing.'''
        posz = np.asarray(ak.to_numpy(posz) if isinstance(posz, ak.Array) else posz, dtype=np.float64)
        mult = np.asarray(ak.to_numpy(mult) if isinstance(mult, ak.Array) else mult, dtype=np.float64)
        ivtx = self._axis_index(posz, self.vtx_edges)
        imult = self._axis_index(mult, self.mult_edges)
        flat = ivtx * self.shape[1] + imult
        return np.where((ivtx < 0) | (imult < 0), -1, flat)


class AnchorDepth:
    '''Number of partners already mixed with the current anchor event.'''

    def __init__(self, ndepth):
        if ndepth < 0:
            raise ValueError(f"[ERROR] Mixing depth must be non-negative, got {ndepth}")
        self.ndepth = ndepth
        self.anchor = None
        self.depth = 0

    def update(self, anchor):
        if anchor != self.anchor:
            self.anchor = anchor
            self.depth = 0

    def is_full(self):
        return self.depth >= self.ndepth

    def increment(self):
        self.depth += 1


def bin_pools(bin_ids):
    '''Event indices per mixing bin, ascending bin index, ingestion order inside a bin.'''
    pools = defaultdict(list)
    for index, b in enumerate(np.asarray(bin_ids)):
        if b >= 0:
            pools[int(b)].append(index)
    return {b: pools[b] for b in sorted(pools)}


def iter_mixed_event_pairs(bin_ids, ndepth, is_mixable, window=1000, state=None):
    '''
    Yield accepted (anchor, partner) event-index pairs.

    Inside each bin the anchor precedes the partner (strictly upper pairs), so
    an event is never mixed with itself and an unordered pair appears once.
    Partners are taken from the next `window` events of the bin. For every
    anchor at most `ndepth` partners are accepted; `is_mixable(anchor, partner)`
    decides whether a candidate partner is used and only accepted partners
    count towards the depth.
    '''
    state = state if state is not None else AnchorDepth(ndepth)
    for pool in bin_pools(bin_ids).values():
        for ia, anchor in enumerate(pool):
            state.update(anchor)
            for partner in pool[ia + 1: ia + 1 + window]:
                if state.is_full():
                    break
                if not is_mixable(anchor, partner):
                    continue
                yield anchor, partner
                state.increment()
