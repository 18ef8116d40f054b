import logging

import numpy as np
import hist
from hist import Hist
from boost_histogram import storage

from photon_hbt import hbt_config
from photon_hbt.utils.pair_selection import PairType, cut_pairs
from photon_hbt.utils.kinematics import OBSERVABLES

logger = logging.getLogger(__name__)

KINDS = ("same", "mixed")
PAIR_HIST_NAMES = {"same": "hs_q_same", "mixed": "hs_q_mix"}
COLLISION_STAGES = ["all", "sel8", "Ncontrib>0", "|Zvtx|<10cm"]


def make_pair_hist(axes_spec=None):
    axes_spec = axes_spec if axes_spec is not None else hbt_config.pair_hist_axes
    axes = [hist.axis.Regular(nbins, lo, hi, name=name, label=label) for name, nbins, lo, hi, label in axes_spec]
    return Hist(*axes, storage=storage.Double())


def make_event_hists():
    nbins, lo, hi = hbt_config.zvtx_axis
    return {
        "hZvtx_before": Hist.new.Reg(nbins, lo, hi, name="zvtx", label="Z_{vtx} (cm)").Double(),
        "hZvtx_after": Hist.new.Reg(nbins, lo, hi, name="zvtx", label="Z_{vtx} (cm)").Double(),
        "hCollisionCounter": hist.Hist(hist.axis.StrCategory(COLLISION_STAGES, name="cut"), storage=storage.Double()),
        "hDegeneratePairs": hist.Hist(hist.axis.StrCategory(list(KINDS), name="kind"), storage=storage.Double()),
    }


def event_hist_name(pairtype, name):
    return f"Event/{PairType.coerce(pairtype).name}/{name}"


class HistogramRegistry:
    '''
    Owner of every histogram bucket, built once from the enabled pair types and
    the resolved cut lists.

    Pair buckets are keyed by (PairType, cut_name1, cut_name2, kind); event
    histograms by (PairType, histogram name). Both map to the path used as key
    of the processor output and as ROOT path on output.
    '''

    def __init__(self, pairtypes, cuts_by_subsystem, pair_axes=None):
        self.pairtypes = [PairType.coerce(p) for p in pairtypes]
        self.pair_axes = pair_axes if pair_axes is not None else hbt_config.pair_hist_axes
        axis_names = sorted(name for name, *_ in self.pair_axes)
        if axis_names != sorted(OBSERVABLES):
            raise ValueError(f"[ERROR] Pair histogram axes must be named {list(OBSERVABLES)}, got {axis_names}")
        self._pair_keys = {}
        self._event_keys = {}
        self._cut_pairs = {}
        self._histograms = {}

        for pairtype in self.pairtypes:
            logger.info("Enabled pairs = %s", pairtype.name)
            sub1, sub2 = pairtype.subsystems
            combos = cut_pairs(pairtype, cuts_by_subsystem.get(sub1, []), cuts_by_subsystem.get(sub2, []))
            self._cut_pairs[pairtype] = combos

            for name, h in make_event_hists().items():
                path = event_hist_name(pairtype, name)
                self._event_keys[(pairtype, name)] = path
                self._histograms[path] = h

            for cut1, cut2 in combos:
                for kind in KINDS:
                    path = f"Pair/{pairtype.name}/{cut1.name}_{cut2.name}/{PAIR_HIST_NAMES[kind]}"
                    self._pair_keys[(pairtype, cut1.name, cut2.name, kind)] = path
                    self._histograms[path] = make_pair_hist(self.pair_axes)

    @property
    def histograms(self):
        return self._histograms

    def cut_pairs(self, pairtype):
        return self._cut_pairs[PairType.coerce(pairtype)]

    def pair_keys(self, pairtype=None, kind=None):
        return [
            key for key in self._pair_keys
            if (pairtype is None or key[0] == pairtype) and (kind is None or key[3] == kind)
        ]

    def pair_path(self, pairtype, cut1, cut2, kind):
        return self._pair_keys[(PairType.coerce(pairtype), getattr(cut1, "name", cut1), getattr(cut2, "name", cut2), kind)]

    def event_path(self, pairtype, name):
        return self._event_keys[(PairType.coerce(pairtype), name)]

    def make_output(self):
        return {path: h.copy() for path, h in self._histograms.items()}

    def fill_pairs(self, output, pairtype, cut1, cut2, kind, observables):
        '''Fill the valid entries of a pair_observables result into one bucket.'''
        valid = observables["valid"]
        if not np.any(valid):
            return 0
        h = output[self.pair_path(pairtype, cut1, cut2, kind)]
        h.fill(**{name: observables[name][valid] for name, *_ in self.pair_axes})
        return int(np.count_nonzero(valid))


#----------------------------------------------------------------------------------------------------------------------------#

def _is_num_axis(ax):
    return isinstance(ax, (hist.axis.Regular, hist.axis.Variable, hist.axis.Integer))


def write_output(rootfile, output, project_pairs_on="qinv"):
    '''
    Write histograms of a processor output to an open uproot file.
    1D/2D numeric histograms are written as TH1/TH2, categorical counters as
    plain numpy histograms, pair buckets as their projection on one axis.
    Empty histograms are skipped.
    '''
    written = 0
    for path, h in output.items():
        if not isinstance(h, hist.Hist):
            continue
        if float(np.sum(h.values(flow=True))) == 0.0:
            continue

        if h.ndim > 2:
            rootfile[f"{path}_{project_pairs_on}"] = h.project(project_pairs_on)
        elif all(_is_num_axis(ax) for ax in h.axes):
            rootfile[path] = h
        else:
            rootfile[path] = h.to_numpy()
        written += 1
    return written
