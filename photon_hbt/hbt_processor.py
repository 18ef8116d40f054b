import logging

import numpy as np
import awkward as ak
from coffea import processor

from photon_hbt import hbt_config
from photon_hbt.utils.photon_cuts import define_cuts
from photon_hbt.utils.pair_selection import (
    PairType,
    COUNT_FIELDS,
    is_selected_pair,
    readout_flags
)
from photon_hbt.utils.kinematics import pair_observables_from_pairs
from photon_hbt.utils.event_mixing import (
    AnchorDepth,
    MixingBinning,
    iter_mixed_event_pairs
)
from photon_hbt.utils.event_io import (
    mixing_event_mask,
    with_candidate_counts
)
from photon_hbt.utils.histograms import (
    COLLISION_STAGES,
    HistogramRegistry
)

logger = logging.getLogger(__name__)


def _flag(events, field):
    return ak.to_numpy(ak.values_astype(events[field], bool))


class PhotonHBTProcessor(processor.ProcessorABC):
    '''
    Photon HBT pairing: same-event pairs and event-mixing background for every
    enabled pair type and cut combination, filled into 5D (qinv, qlong, qout,
    qside, kt) histograms.

    Events are awkward records with the event fields (posZ, numContrib, sel8,
    multNTracksPV, readout flags, candidate counts) and one jagged photon
    collection per subsystem ("PCM", "PHOS", "EMC"). Mixing pools are built
    inside one call of `process`, events are taken in the order given.
    '''

    def __init__(self, pair_types=None, pcm_cuts=None, phos_cuts=None, emc_cuts=None,
                 ndepth=None, mixing_window=None, vtx_bins=None, mult_bins=None,
                 max_abs_zvtx=None, ignore_overflows=False, pair_axes=None):
        self.pair_types = [
            PairType.coerce(p)
            for p in (pair_types if pair_types is not None else hbt_config.pair_types)
        ]
        self.cuts = {
            "PCM":  define_cuts("PCM",  pcm_cuts  if pcm_cuts  is not None else hbt_config.pcm_cuts),
            "PHOS": define_cuts("PHOS", phos_cuts if phos_cuts is not None else hbt_config.phos_cuts),
            "EMC":  define_cuts("EMC",  emc_cuts  if emc_cuts  is not None else hbt_config.emc_cuts),
        }
        self.ndepth        = hbt_config.ndepth if ndepth is None else int(ndepth)
        self.mixing_window = hbt_config.mixing_window if mixing_window is None else int(mixing_window)
        self.max_abs_zvtx  = hbt_config.max_abs_zvtx if max_abs_zvtx is None else float(max_abs_zvtx)
        if self.ndepth < 0:
            raise ValueError(f"[ERROR] Mixing depth must be non-negative, got {self.ndepth}")
        if self.mixing_window < 1:
            raise ValueError(f"[ERROR] Mixing window must be positive, got {self.mixing_window}")

        self.binning = MixingBinning(
            vtx_bins if vtx_bins is not None else hbt_config.vtx_bins,
            mult_bins if mult_bins is not None else hbt_config.mult_bins,
            ignore_overflows=ignore_overflows,
        )
        self.registry = HistogramRegistry(self.pair_types, self.cuts, pair_axes=pair_axes)

    @property
    def histograms(self):
        return self.registry.histograms

    def _collections(self, events, pairtype):
        missing = [s for s in dict.fromkeys(pairtype.subsystems) if s not in ak.fields(events)]
        if missing:
            logger.warning("No %s candidates in input, %s pairs skipped", missing, pairtype.name)
            return None
        sub1, sub2 = pairtype.subsystems
        return events[sub1], events[sub2]

    def _fill_cut_pairs(self, output, pairtype, pairs, kind):
        '''Apply every cut combination of the pair type to the enumerated pairs.'''
        n_filled = 0
        n_degenerate = 0
        for cut1, cut2 in self.registry.cut_pairs(pairtype):
            mask = is_selected_pair(pairtype, pairs.g1, pairs.g2, cut1, cut2)
            accepted = pairs[mask]
            observables = pair_observables_from_pairs(accepted.g1, accepted.g2)
            filled = self.registry.fill_pairs(output, pairtype, cut1, cut2, kind, observables)
            n_filled += filled
            n_degenerate += len(observables["valid"]) - filled

        if n_degenerate:
            output[self.registry.event_path(pairtype, "hDegeneratePairs")].fill(kind=kind, weight=n_degenerate)
        return n_filled, n_degenerate

    #----------------------------------------------------------------------------------------------------------------------------#

    def same_event_pairing(self, output, pairtype, events):
        '''
        Pair candidates of the same event. Returns the number of events passing
        each collision selection stage.
        '''
        pairtype = PairType.coerce(pairtype)

        # events without readout of a requested calorimeter are not accounted at all
        readout = np.ones(len(events), dtype=bool)
        for flag in readout_flags(pairtype):
            readout &= _flag(events, flag)
        events = events[readout]

        posz = ak.to_numpy(events.posZ)
        stage_masks = {}
        stage_masks["all"] = np.ones(len(events), dtype=bool)
        stage_masks["sel8"] = stage_masks["all"] & _flag(events, "sel8")
        stage_masks["Ncontrib>0"] = stage_masks["sel8"] & (ak.to_numpy(events.numContrib) > 0)
        stage_masks["|Zvtx|<10cm"] = stage_masks["Ncontrib>0"] & (np.abs(posz) < self.max_abs_zvtx)

        stage_counts = {stage: int(np.count_nonzero(stage_masks[stage])) for stage in COLLISION_STAGES}
        counter = output[self.registry.event_path(pairtype, "hCollisionCounter")]
        for stage in COLLISION_STAGES:
            counter.fill(cut=stage, weight=stage_counts[stage])
        output[self.registry.event_path(pairtype, "hZvtx_before")].fill(zvtx=posz)

        selected = stage_masks["|Zvtx|<10cm"]
        output[self.registry.event_path(pairtype, "hZvtx_after")].fill(zvtx=posz[selected])

        collections = self._collections(events[selected], pairtype)
        if collections is None:
            return stage_counts
        photons1, photons2 = collections

        if pairtype.is_symmetric:
            pairs = ak.combinations(photons1, 2, fields=["g1", "g2"])
        else:
            pairs = ak.cartesian({"g1": photons1, "g2": photons2})

        n_filled, n_degenerate = self._fill_cut_pairs(output, pairtype, pairs, "same")
        logger.debug("%s same-event: %d events, %d pairs filled, %d degenerate",
                     pairtype.name, stage_counts["|Zvtx|<10cm"], n_filled, n_degenerate)
        return stage_counts

    #----------------------------------------------------------------------------------------------------------------------------#

    def mixable_events(self, pairtype, pool):
        '''Per-event requirement for a mixing partner of this pair type.'''
        pairtype = PairType.coerce(pairtype)
        mask = np.ones(len(pool), dtype=bool)
        for subsystem, nmin in pairtype.min_counts().items():
            mask &= ak.to_numpy(pool[COUNT_FIELDS[subsystem]]) >= nmin
        if not pairtype.is_symmetric:
            for flag in readout_flags(pairtype):
                mask &= _flag(pool, flag)
        return mask

    def mixed_event_pairing(self, output, pairtype, events):
        '''
        Pair candidates of different events of the same mixing bin. Returns the
        accepted (anchor, partner) pairs as indices into `events`.
        '''
        pairtype = PairType.coerce(pairtype)
        events = with_candidate_counts(events)
        pool_index = np.flatnonzero(mixing_event_mask(events, self.max_abs_zvtx))
        pool = events[pool_index]

        bin_ids = self.binning.bin_index(pool.posZ, pool.multNTracksPV)
        mixable = self.mixable_events(pairtype, pool)

        event_pairs = list(iter_mixed_event_pairs(
            bin_ids,
            self.ndepth,
            lambda anchor, partner: bool(mixable[anchor] and mixable[partner]),
            window=self.mixing_window,
            state=AnchorDepth(self.ndepth),
        ))
        if not event_pairs:
            return []

        collections = self._collections(pool, pairtype)
        if collections is None:
            return []
        photons1, photons2 = collections

        anchors = np.array([a for a, _ in event_pairs], dtype=np.int64)
        partners = np.array([b for _, b in event_pairs], dtype=np.int64)
        pairs = ak.cartesian({"g1": photons1[anchors], "g2": photons2[partners]})

        n_filled, n_degenerate = self._fill_cut_pairs(output, pairtype, pairs, "mixed")
        logger.debug("%s mixed-event: %d pool events, %d event pairs, %d pairs filled, %d degenerate",
                     pairtype.name, len(pool), len(event_pairs), n_filled, n_degenerate)
        return [(int(pool_index[a]), int(pool_index[b])) for a, b in event_pairs]

    #----------------------------------------------------------------------------------------------------------------------------#

    def process(self, events):
        events = with_candidate_counts(events)
        output = self.registry.make_output()
        for pairtype in self.pair_types:
            self.same_event_pairing(output, pairtype, events)
            self.mixed_event_pairing(output, pairtype, events)
        logger.info("Processed %d events for pairs %s", len(events), [p.name for p in self.pair_types])
        return output

    def postprocess(self, accumulator):
        return accumulator
