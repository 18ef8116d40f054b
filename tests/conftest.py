import awkward as ak
import numpy as np
import pytest


def pcm_photon(pt, eta=0.0, phi=0.0, **overrides):
    leg = {
        "pt": pt / 2.0, "eta": eta,
        "tpcNClsFound": 120, "tpcNClsCrossedRows": 130, "tpcChi2NCl": 1.0,
        "tpcNSigmaEl": 0.0, "tpcNSigmaPi": 5.0,
    }
    photon = {
        "pt": pt, "eta": eta, "phi": phi,
        "v0radius": 20.0, "cospa": 0.999, "pca": 0.5, "alpha": 0.1, "qtarm": 0.01,
        "posTrack": dict(leg), "negTrack": dict(leg),
    }
    for key, value in overrides.items():
        if key in ("posTrack", "negTrack"):
            photon[key] = {**photon[key], **value}
        else:
            photon[key] = value
    return photon


def phos_cluster(pt, eta=0.0, phi=0.0, **overrides):
    cluster = {
        "pt": pt, "eta": eta, "phi": phi,
        "e": max(pt, 1.0), "nCells": 5, "m02": 0.5, "cpvMatched": False, "isExotic": False,
    }
    cluster.update(overrides)
    return cluster


def emc_cluster(pt, eta=0.0, phi=0.0, **overrides):
    cluster = {
        "pt": pt, "eta": eta, "phi": phi,
        "e": max(pt, 1.0), "nCells": 3, "m02": 0.3, "time": 0.0, "trackMatched": False, "isExotic": False,
    }
    cluster.update(overrides)
    return cluster


def collision(collision_id=0, posZ=0.0, numContrib=10, sel8=True, mult=15,
              phos_readout=True, emc_readout=True, pcm=(), phos=(), emc=()):
    return {
        "collisionId": collision_id,
        "posZ": posZ,
        "numContrib": numContrib,
        "sel8": sel8,
        "multNTracksPV": mult,
        "isPHOSCPVreadout": phos_readout,
        "isEMCreadout": emc_readout,
        "PCM": list(pcm),
        "PHOS": list(phos),
        "EMC": list(emc),
    }


def make_events(collisions):
    '''
    Awkward events from collision dicts. A sentinel event holding one candidate
    of each subsystem fixes the record types and is sliced off again.
    '''
    sentinel = collision(
        collision_id=-1,
        pcm=[pcm_photon(1.0)], phos=[phos_cluster(1.0)], emc=[emc_cluster(1.0)],
    )
    return ak.Array(list(collisions) + [sentinel])[:-1]


def flat_branches():
    '''Three events in the flat branch layout of a skimmed tree.'''
    legs = {f"PCM_{leg}_{f}": ak.Array(v) for leg in ("posTrack", "negTrack") for f, v in {
        "pt": [[0.5, 0.6], [], [0.4]],
        "eta": [[0.0, 0.1], [], [0.2]],
        "tpcNClsFound": [[120, 110], [], [90]],
        "tpcNClsCrossedRows": [[130, 120], [], [100]],
        "tpcChi2NCl": [[1.0, 1.2], [], [0.9]],
        "tpcNSigmaEl": [[0.0, 0.5], [], [-0.5]],
        "tpcNSigmaPi": [[5.0, 4.0], [], [6.0]],
    }.items()}
    return ak.zip({
        "posZ": np.array([1.0, -12.0, 3.0]),
        "numContrib": np.array([20, 5, 0]),
        "sel8": np.array([True, True, True]),
        "PCM_pt": ak.Array([[1.0, 1.2], [], [0.8]]),
        "PCM_eta": ak.Array([[0.0, 0.1], [], [0.2]]),
        "PCM_phi": ak.Array([[0.5, 1.5], [], [2.5]]),
        "PCM_v0radius": ak.Array([[20.0, 30.0], [], [10.0]]),
        "PCM_cospa": ak.Array([[0.999, 0.998], [], [0.999]]),
        "PCM_pca": ak.Array([[0.5, 0.4], [], [0.3]]),
        "PCM_alpha": ak.Array([[0.1, -0.2], [], [0.3]]),
        "PCM_qtarm": ak.Array([[0.01, 0.02], [], [0.01]]),
        "PHOS_pt": ak.Array([[1.0], [2.0, 0.5], []]),
        "PHOS_eta": ak.Array([[0.0], [0.05, 0.0], []]),
        "PHOS_phi": ak.Array([[4.5], [4.6, 4.7], []]),
        "PHOS_e": ak.Array([[1.0], [2.0, 0.5], []]),
        "PHOS_nCells": ak.Array([[4], [6, 2], []]),
        "PHOS_m02": ak.Array([[0.4], [0.5, 0.3], []]),
        "PHOS_cpvMatched": ak.Array([[False], [True, False], []]),
        "PHOS_isExotic": ak.Array([[False], [False, False], []]),
        **legs,
    }, depth_limit=1)


@pytest.fixture
def events_factory():
    return make_events
