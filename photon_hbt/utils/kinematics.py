import numpy as np
import awkward as ak
import vector

OBSERVABLES = ("qinv", "qlong", "qout", "qside", "kt")


def _as_numpy(x):
    if isinstance(x, ak.Array):
        x = ak.to_numpy(x)
    return np.asarray(x, dtype=np.float64)


def make_photon_vector(pt, eta, phi):
    '''
    Massless Momentum4D array in Cartesian coordinates. Photons built from
    (pt, eta, phi) are converted right away so that differences of (nearly)
    identical photons stay finite.
    '''
    pt, eta, phi = _as_numpy(pt), _as_numpy(eta), _as_numpy(phi)
    return vector.array({
        "pt": pt,
        "eta": eta,
        "phi": phi,
        "mass": np.zeros_like(pt),
    }).to_xyzt()


def pair_frame(k12):
    '''
    (out, side, long) axes of the pair frame for pair momenta k12.

    out = k/|k| in the lab, long = beam axis, side = out x long. The set is
    not orthonormal: side has length kt/|k| and out keeps the longitudinal
    component of k. Entries with |k| == 0 are NaN.
    '''
    kmag = np.asarray(k12.mag, dtype=np.float64)
    safe_kmag = np.where(kmag > 0.0, kmag, np.nan)
    uv_out = vector.array({"x": k12.x / safe_kmag, "y": k12.y / safe_kmag, "z": k12.z / safe_kmag})
    uv_long = vector.array({"x": np.zeros_like(kmag), "y": np.zeros_like(kmag), "z": np.ones_like(kmag)})
    uv_side = uv_out.cross(uv_long)
    return uv_out, uv_side, uv_long


def pair_observables(pt1, eta1, phi1, pt2, eta2, phi2):
    '''
    Relative-momentum decomposition of photon pairs.

    q = v1 - v2, k = (v1 + v2) / 2. The "out" axis is the direction of the
    pair momentum k in the lab frame, "long" is the beam axis and
    "side" = out x long. No boost to the longitudinally co-moving frame is
    applied.

    Returns a dict of numpy arrays keyed by OBSERVABLES plus a boolean
    "valid" mask. Pairs with a vanishing k (no "out" direction) have
    valid == False and NaN qout and qside.
    '''
    if len(pt1) == 0:
        empty = {name: np.zeros(0, dtype=np.float64) for name in OBSERVABLES}
        empty["valid"] = np.zeros(0, dtype=bool)
        return empty

    v1 = make_photon_vector(pt1, eta1, phi1)
    v2 = make_photon_vector(pt2, eta2, phi2)

    q12 = v1 - v2
    k12 = (v1 + v2).scale(0.5)

    # vector's mass is signed, negative for space-like q
    qinv = -np.asarray(q12.mass, dtype=np.float64)
    valid = np.asarray(k12.mag, dtype=np.float64) > 0.0

    q_3d = vector.array({"x": q12.x, "y": q12.y, "z": q12.z})
    uv_out, uv_side, uv_long = pair_frame(k12)

    # 0 * NaN dot products come back as 0 from vector
    qout = np.where(valid, q_3d.dot(uv_out), np.nan)
    qside = np.where(valid, q_3d.dot(uv_side), np.nan)

    return {
        "qinv": qinv,
        "qlong": np.asarray(q_3d.dot(uv_long), dtype=np.float64),
        "qout": np.asarray(qout, dtype=np.float64),
        "qside": np.asarray(qside, dtype=np.float64),
        "kt": np.asarray(k12.pt, dtype=np.float64),
        "valid": valid,
    }


def pair_observables_from_pairs(g1, g2):
    '''
    Same as pair_observables for two aligned awkward arrays of candidates
    (one entry per pair, any nesting; flattened before the transform).
    '''
    return pair_observables(
        ak.flatten(g1.pt, axis=None), ak.flatten(g1.eta, axis=None), ak.flatten(g1.phi, axis=None),
        ak.flatten(g2.pt, axis=None), ak.flatten(g2.eta, axis=None), ak.flatten(g2.phi, axis=None),
    )


def pair_observables_scalar(p1, p2):
    '''
    (qinv, qlong, qout, qside, kt) of a single pair. p1, p2 are (pt, eta, phi)
    tuples. Raises ValueError when the pair momentum vanishes.
    '''
    obs = pair_observables([p1[0]], [p1[1]], [p1[2]], [p2[0]], [p2[1]], [p2[2]])
    if not obs["valid"][0]:
        raise ValueError("[ERROR] Degenerate photon pair: vanishing pair momentum, 'out' axis undefined")
    return tuple(float(obs[name][0]) for name in OBSERVABLES)
