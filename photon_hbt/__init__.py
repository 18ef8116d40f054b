from photon_hbt.hbt_processor import PhotonHBTProcessor
from photon_hbt.utils.pair_selection import PairType

__all__ = ["PhotonHBTProcessor", "PairType"]
