import numpy as np

# comma separated cut names per subsystem, resolved against the catalogs below
pcm_cuts  = "analysis,qc,nocut"
phos_cuts = "test02,test03"
emc_cuts  = "standard,nocut"

pair_types = ["PCMPCM", "PHOSPHOS", "PCMPHOS"]

# event selection
max_abs_zvtx = 10.0

# event mixing
ndepth        = 10
mixing_window = 1000
vtx_bins  = [-10.0, -8.0, -6.0, -4.0, -2.0, 0.0, 2.0, 4.0, 6.0, 8.0, 10.0]
mult_bins = [0.0, 10.0, 20.0, 40.0, 60.0, 80.0, 100.0, 200.0, 1e+10]

# (name, nbins, low, high, label) of the pair histograms, in fill order
pair_hist_axes = [
    ("qinv",  20,  0.0, 0.4, "q_{inv} (GeV/c)"),
    ("qlong", 10, -0.4, 0.4, "q_{long} (GeV/c)"),
    ("qout",  10, -0.4, 0.4, "q_{out} (GeV/c)"),
    ("qside", 10, -0.4, 0.4, "q_{side} (GeV/c)"),
    ("kt",     5,  0.0, 1.0, "k_{T} (GeV/c)"),
]

zvtx_axis = (100, -50.0, 50.0)

#----------------------------------------------------------------------------------------------------------------------------#
# photon cut catalogs
#----------------------------------------------------------------------------------------------------------------------------#

pcm_cut_library = {
    "analysis": {
        "min_pt": 0.1, "max_eta": 0.9,
        "min_v0radius": 1.0, "max_v0radius": 90.0, "min_cospa": 0.99, "max_pca": 1.5,
        "max_alpha": 0.95, "max_qtarm": 0.05,
        "min_leg_pt": 0.04, "min_ncls_tpc": 20, "min_ncrossedrows": 40, "max_chi2_tpc": 4.0,
        "tpc_nsigma_el": (-3.0, 3.0), "tpc_nsigma_pi": (-1e10, 1e10),
    },
    "qc": {
        "min_pt": 0.1, "max_eta": 0.9,
        "min_v0radius": 1.0, "max_v0radius": 180.0, "min_cospa": 0.95, "max_pca": 2.0,
        "max_alpha": 0.95, "max_qtarm": 0.05,
        "min_leg_pt": 0.04, "min_ncls_tpc": 10, "min_ncrossedrows": 40, "max_chi2_tpc": 4.0,
        "tpc_nsigma_el": (-3.0, 3.0), "tpc_nsigma_pi": (-1e10, 1e10),
    },
    "nocut": {
        "min_pt": 0.0, "max_eta": 0.9,
        "min_v0radius": 0.0, "max_v0radius": 1e10, "min_cospa": -1.0, "max_pca": 1e10,
        "max_alpha": 1.0, "max_qtarm": 1e10,
        "min_leg_pt": 0.0, "min_ncls_tpc": 0, "min_ncrossedrows": 0, "max_chi2_tpc": 1e10,
        "tpc_nsigma_el": (-1e10, 1e10), "tpc_nsigma_pi": (-1e10, 1e10),
    },
    "wwire": {
        "min_pt": 0.1, "max_eta": 0.9,
        "min_v0radius": 7.0, "max_v0radius": 14.0, "min_cospa": 0.99, "max_pca": 1.5,
        "max_alpha": 0.95, "max_qtarm": 0.05,
        "min_leg_pt": 0.04, "min_ncls_tpc": 20, "min_ncrossedrows": 40, "max_chi2_tpc": 4.0,
        "tpc_nsigma_el": (-3.0, 3.0), "tpc_nsigma_pi": (-1e10, 1e10),
    },
}

phos_cut_library = {
    "test02": {"min_energy": 0.2, "max_energy": 1e10, "min_ncells": 2, "min_m02": 0.2, "reject_cpv_matched": False, "reject_exotic": True},
    "test03": {"min_energy": 0.3, "max_energy": 1e10, "min_ncells": 3, "min_m02": 0.2, "reject_cpv_matched": True,  "reject_exotic": True},
    "nocut":  {"min_energy": 0.0, "max_energy": 1e10, "min_ncells": 0, "min_m02": 0.0, "reject_cpv_matched": False, "reject_exotic": False},
}

emc_cut_library = {
    "standard": {"min_energy": 0.7, "max_energy": 1e10, "min_ncells": 1, "min_m02": 0.1, "max_m02": 0.7,
                 "time_window": (-20.0, 25.0), "reject_track_matched": True, "reject_exotic": True},
    "nocut":    {"min_energy": 0.0, "max_energy": 1e10, "min_ncells": 0, "min_m02": 0.0, "max_m02": 1e10,
                 "time_window": (-np.inf, np.inf), "reject_track_matched": False, "reject_exotic": False},
}
