import logging
from dataclasses import dataclass

import numpy as np

from photon_hbt import hbt_config

logger = logging.getLogger(__name__)

SUBSYSTEMS = ("PCM", "PHOS", "EMC")


def _in_range(x, window):
    lo, hi = window
    return (x > lo) & (x < hi)


@dataclass(frozen=True)
class V0PhotonCut:
    '''
    Conversion photon selection. Applied to the V0 candidate and to both of its
    tracking legs (`posTrack`, `negTrack`).
    '''
    name: str
    min_pt: float = 0.0
    max_eta: float = 0.9
    min_v0radius: float = 0.0
    max_v0radius: float = 1e10
    min_cospa: float = -1.0
    max_pca: float = 1e10
    max_alpha: float = 1.0
    max_qtarm: float = 1e10
    min_leg_pt: float = 0.0
    min_ncls_tpc: int = 0
    min_ncrossedrows: int = 0
    max_chi2_tpc: float = 1e10
    tpc_nsigma_el: tuple = (-1e10, 1e10)
    tpc_nsigma_pi: tuple = (-1e10, 1e10)

    subsystem = "PCM"
    uses_legs = True

    def is_selected_leg(self, leg):
        return (
            (leg.pt > self.min_leg_pt)
            & (np.abs(leg.eta) < self.max_eta)
            & (leg.tpcNClsFound >= self.min_ncls_tpc)
            & (leg.tpcNClsCrossedRows >= self.min_ncrossedrows)
            & (leg.tpcChi2NCl < self.max_chi2_tpc)
            & _in_range(leg.tpcNSigmaEl, self.tpc_nsigma_el)
            & _in_range(leg.tpcNSigmaPi, self.tpc_nsigma_pi)
        )

    def is_selected_v0(self, photons):
        return (
            (photons.pt > self.min_pt)
            & (np.abs(photons.eta) < self.max_eta)
            & (photons.v0radius > self.min_v0radius)
            & (photons.v0radius < self.max_v0radius)
            & (photons.cospa > self.min_cospa)
            & (photons.pca < self.max_pca)
            & (np.abs(photons.alpha) < self.max_alpha)
            & (photons.qtarm < self.max_qtarm)
        )

    def is_selected(self, photons):
        return (
            self.is_selected_v0(photons)
            & self.is_selected_leg(photons.posTrack)
            & self.is_selected_leg(photons.negTrack)
        )


@dataclass(frozen=True)
class PHOSPhotonCut:
    name: str
    min_energy: float = 0.0
    max_energy: float = 1e10
    min_ncells: int = 0
    min_m02: float = 0.0
    reject_cpv_matched: bool = False
    reject_exotic: bool = False

    subsystem = "PHOS"
    uses_legs = False

    def is_selected(self, clusters):
        mask = (
            (clusters.e > self.min_energy)
            & (clusters.e < self.max_energy)
            & (clusters.nCells >= self.min_ncells)
            & (clusters.m02 >= self.min_m02)
        )
        if self.reject_cpv_matched:
            mask = mask & np.logical_not(clusters.cpvMatched)
        if self.reject_exotic:
            mask = mask & np.logical_not(clusters.isExotic)
        return mask


@dataclass(frozen=True)
class EMCPhotonCut:
    name: str
    min_energy: float = 0.0
    max_energy: float = 1e10
    min_ncells: int = 0
    min_m02: float = 0.0
    max_m02: float = 1e10
    time_window: tuple = (-np.inf, np.inf)
    reject_track_matched: bool = False
    reject_exotic: bool = False

    subsystem = "EMC"
    uses_legs = False

    def is_selected(self, clusters):
        mask = (
            (clusters.e > self.min_energy)
            & (clusters.e < self.max_energy)
            & (clusters.nCells >= self.min_ncells)
            & (clusters.m02 >= self.min_m02)
            & (clusters.m02 <= self.max_m02)
            & _in_range(clusters.time, self.time_window)
        )
        if self.reject_track_matched:
            mask = mask & np.logical_not(clusters.trackMatched)
        if self.reject_exotic:
            mask = mask & np.logical_not(clusters.isExotic)
        return mask


_CATALOGS = {
    "PCM":  (V0PhotonCut,   hbt_config.pcm_cut_library),
    "PHOS": (PHOSPhotonCut, hbt_config.phos_cut_library),
    "EMC":  (EMCPhotonCut,  hbt_config.emc_cut_library),
}


def get_cut(subsystem, name):
    '''
    Resolve a cut name of one subsystem to its immutable definition.
    Raises ValueError for unknown subsystems or names.
    '''
    if subsystem not in _CATALOGS:
        raise ValueError(f"[ERROR] Unknown photon subsystem '{subsystem}', expected one of {SUBSYSTEMS}")
    cut_class, library = _CATALOGS[subsystem]
    if name not in library:
        raise ValueError(f"[ERROR] Unknown {subsystem} cut '{name}'. Available: {sorted(library)}")
    return cut_class(name=name, **library[name])


def define_cuts(subsystem, cut_names):
    '''
    Parse a comma separated list of cut names (or an iterable of names) and
    resolve each of them, keeping the configured order.
    '''
    if isinstance(cut_names, str):
        names = [n.strip() for n in cut_names.split(",") if n.strip()]
    else:
        names = [str(n).strip() for n in cut_names if str(n).strip()]

    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ValueError(f"[ERROR] Duplicate {subsystem} cut names: {duplicates}")

    cuts = []
    for name in names:
        logger.info("add cut : %s", name)
        cuts.append(get_cut(subsystem, name))
    logger.info("Number of %s cuts = %d", subsystem, len(cuts))
    return cuts
