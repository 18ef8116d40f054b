import awkward as ak
import pytest

from conftest import pcm_photon, phos_cluster, emc_cluster
from photon_hbt.utils.photon_cuts import (
    EMCPhotonCut,
    PHOSPhotonCut,
    V0PhotonCut,
    define_cuts,
    get_cut
)


def test_get_cut_resolves_catalog_entries():
    cut = get_cut("PHOS", "test03")
    assert isinstance(cut, PHOSPhotonCut)
    assert cut.name == "test03"
    assert cut.min_ncells == 3
    assert cut.reject_cpv_matched

    assert isinstance(get_cut("PCM", "qc"), V0PhotonCut)
    assert isinstance(get_cut("EMC", "standard"), EMCPhotonCut)


def test_get_cut_unknown():
    with pytest.raises(ValueError):
        get_cut("PCM", "does_not_exist")
    with pytest.raises(ValueError):
        get_cut("DALITZ", "analysis")


def test_define_cuts_keeps_order():
    cuts = define_cuts("PCM", " nocut, analysis ,qc")
    assert [c.name for c in cuts] == ["nocut", "analysis", "qc"]

    cuts = define_cuts("PHOS", ["test03", "test02"])
    assert [c.name for c in cuts] == ["test03", "test02"]

    assert define_cuts("EMC", "") == []


def test_define_cuts_rejects_duplicates():
    with pytest.raises(ValueError):
        define_cuts("PCM", "analysis,qc,analysis")


def test_cuts_are_immutable():
    cut = get_cut("PCM", "analysis")
    with pytest.raises(AttributeError):
        cut.min_pt = 0.0


def test_v0_cut_on_jagged_events():
    cut = get_cut("PCM", "analysis")
    photons = ak.Array([
        [pcm_photon(1.0), pcm_photon(1.0, v0radius=120.0)],
        [],
        [pcm_photon(0.05), pcm_photon(2.0, posTrack={"tpcNClsFound": 5})],
    ])
    assert ak.to_list(cut.is_selected(photons)) == [[True, False], [], [False, False]]
    # the wider radius window of the qc cut accepts the outer conversion
    assert ak.to_list(get_cut("PCM", "qc").is_selected(photons[0])) == [True, True]


def test_phos_cut_thresholds():
    clusters = ak.Array([
        phos_cluster(1.0),
        phos_cluster(0.25, e=0.25),
        phos_cluster(1.0, nCells=2),
        phos_cluster(1.0, isExotic=True),
        phos_cluster(1.0, cpvMatched=True),
    ])
    assert ak.to_list(get_cut("PHOS", "test02").is_selected(clusters)) == [True, True, True, False, True]
    assert ak.to_list(get_cut("PHOS", "test03").is_selected(clusters)) == [True, False, False, False, False]
    assert ak.to_list(get_cut("PHOS", "nocut").is_selected(clusters)) == [True] * 5


def test_emc_cut_thresholds():
    clusters = ak.Array([
        emc_cluster(1.0),
        emc_cluster(1.0, time=40.0),
        emc_cluster(1.0, m02=0.9),
        emc_cluster(0.5, e=0.5),
        emc_cluster(1.0, trackMatched=True),
    ])
    assert ak.to_list(get_cut("EMC", "standard").is_selected(clusters)) == [True, False, False, False, False]
    assert ak.to_list(get_cut("EMC", "nocut").is_selected(clusters)) == [True] * 5
