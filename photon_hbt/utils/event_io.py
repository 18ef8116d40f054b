import logging
import time

import numpy as np
import awkward as ak
import uproot

from photon_hbt import hbt_config

logger = logging.getLogger(__name__)

event_fields = ["collisionId", "posZ", "numContrib", "sel8", "multNTracksPV", "isPHOSCPVreadout", "isEMCreadout"]

leg_fields = ["pt", "eta", "tpcNClsFound", "tpcNClsCrossedRows", "tpcChi2NCl", "tpcNSigmaEl", "tpcNSigmaPi"]

photon_fields = {
    "PCM":  ["pt", "eta", "phi", "v0radius", "cospa", "pca", "alpha", "qtarm"],
    "PHOS": ["pt", "eta", "phi", "e", "nCells", "m02", "cpvMatched", "isExotic"],
    "EMC":  ["pt", "eta", "phi", "e", "nCells", "m02", "time", "trackMatched", "isExotic"],
}

count_fields = {"PCM": "ngpcm", "PHOS": "ngphos", "EMC": "ngemc"}

#----------------------------------------------------------------------------------------------------------------------------#

def _rebuild_collection(arrays, subsystem):
    prefix = f"{subsystem}_"
    fields = {f: arrays[prefix + f] for f in photon_fields[subsystem] if prefix + f in ak.fields(arrays)}
    if subsystem == "PCM":
        for leg in ("posTrack", "negTrack"):
            leg_prefix = f"{prefix}{leg}_"
            if any(leg_prefix + f in ak.fields(arrays) for f in leg_fields):
                fields[leg] = ak.zip({f: arrays[leg_prefix + f] for f in leg_fields})
    return ak.zip(fields, depth_limit=2)


def build_collections(arrays):
    '''
    Rebuild per-event photon collections from flat branches ("PCM_pt",
    "PCM_posTrack_tpcNSigmaEl", "PHOS_e", ...) and attach the per-subsystem
    candidate counts when the input does not carry them.
    '''
    available = ak.fields(arrays)
    missing = [f for f in ("posZ", "numContrib", "sel8") if f not in available]
    if missing:
        raise KeyError(f"[ERROR] Event branches missing from input: {missing}")

    out = {f: arrays[f] for f in event_fields if f in available}
    n = len(arrays)
    if "collisionId" not in out:
        out["collisionId"] = np.arange(n)
    if "multNTracksPV" not in out:
        out["multNTracksPV"] = arrays["numContrib"]
    for flag in ("isPHOSCPVreadout", "isEMCreadout"):
        if flag not in out:
            out[flag] = np.ones(n, dtype=bool)

    for subsystem, count_field in count_fields.items():
        if f"{subsystem}_pt" in available:
            out[subsystem] = _rebuild_collection(arrays, subsystem)
            out[count_field] = arrays[count_field] if count_field in available else ak.num(out[subsystem])
        else:
            out[count_field] = arrays[count_field] if count_field in available else np.zeros(n, dtype=np.int64)

    return ak.zip(out, depth_limit=1)


def with_candidate_counts(events):
    '''Attach ngpcm/ngphos/ngemc derived from the collections of in-memory events.'''
    for subsystem, count_field in count_fields.items():
        if count_field in ak.fields(events):
            continue
        if subsystem in ak.fields(events):
            events = ak.with_field(events, ak.num(events[subsystem]), count_field)
        else:
            events = ak.with_field(events, np.zeros(len(events), dtype=np.int64), count_field)
    return events


def open_tree(path, treepath="Events", attempts=5, wait=10):
    for attempt in range(1, attempts + 1):
        try:
            return uproot.open(f"{path}:{treepath}", timeout=300)
        except OSError as e:
            logger.warning("Attempt %d to open %s failed: %s", attempt, path, e)
            if attempt == attempts:
                raise
            time.sleep(wait)


def load_events(path, treepath="Events", entry_start=None, entry_stop=None):
    tree = open_tree(path, treepath)
    arrays = tree.arrays(library="ak", entry_start=entry_start, entry_stop=entry_stop)
    return build_collections(arrays)


def iterate_events(path, treepath="Events", step_size=100000):
    '''Chunks of rebuilt events; the mixing pool of a chunk never spans two chunks.'''
    tree = open_tree(path, treepath)
    for arrays in tree.iterate(library="ak", step_size=step_size):
        yield build_collections(arrays)

#----------------------------------------------------------------------------------------------------------------------------#

def collision_quality_mask(events, max_abs_zvtx=None):
    max_abs_zvtx = hbt_config.max_abs_zvtx if max_abs_zvtx is None else max_abs_zvtx
    return (
        ak.values_astype(events.sel8, bool)
        & (events.numContrib > 0)
        & (np.abs(events.posZ) < max_abs_zvtx)
    )


def subsystem_multiplicity_mask(events):
    '''At least two candidates of one subsystem, or one in each of two subsystems.'''
    npcm, nphos, nemc = events.ngpcm, events.ngphos, events.ngemc
    return (
        (npcm >= 2) | (nphos >= 2) | (nemc >= 2)
        | ((npcm >= 1) & (nphos >= 1))
        | ((npcm >= 1) & (nemc >= 1))
        | ((nphos >= 1) & (nemc >= 1))
    )


def mixing_event_mask(events, max_abs_zvtx=None):
    '''Events eligible for the mixing pool.'''
    return ak.to_numpy(collision_quality_mask(events, max_abs_zvtx) & subsystem_multiplicity_mask(events))
