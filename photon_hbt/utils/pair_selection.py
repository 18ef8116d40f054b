from enum import IntEnum

import numpy as np


class PairType(IntEnum):
    PCMPCM   = 0
    PHOSPHOS = 1
    EMCEMC   = 2
    PCMPHOS  = 3
    PCMEMC   = 4
    PHOSEMC  = 5

    @classmethod
    def from_name(cls, name):
        key = str(name).strip().upper().replace("-", "").replace("_", "")
        if key not in cls.__members__:
            raise ValueError(f"[ERROR] Unknown pair type '{name}'. Available: {list(cls.__members__)}")
        return cls[key]

    @classmethod
    def coerce(cls, value):
        '''PairType from a member, its integer value or its name.'''
        if isinstance(value, str):
            return cls.from_name(value)
        return cls(value)

    @property
    def subsystems(self):
        return _SUBSYSTEMS[self]

    @property
    def is_symmetric(self):
        first, second = self.subsystems
        return first == second

    def min_counts(self):
        '''Minimum number of candidates per subsystem an event needs to be mixed.'''
        first, second = self.subsystems
        if self.is_symmetric:
            return {first: 2}
        return {first: 1, second: 1}

    def accepts_cut_pair(self, cut1, cut2):
        '''Symmetric pair types only combine a cut with itself.'''
        return (not self.is_symmetric) or (cut1.name == cut2.name)


_SUBSYSTEMS = {
    PairType.PCMPCM:   ("PCM", "PCM"),
    PairType.PHOSPHOS: ("PHOS", "PHOS"),
    PairType.EMCEMC:   ("EMC", "EMC"),
    PairType.PCMPHOS:  ("PCM", "PHOS"),
    PairType.PCMEMC:   ("PCM", "EMC"),
    PairType.PHOSEMC:  ("PHOS", "EMC"),
}

# event fields holding the readout availability of a subsystem
READOUT_FLAGS = {
    "PHOS": "isPHOSCPVreadout",
    "EMC":  "isEMCreadout",
}

# event fields holding the number of candidates of a subsystem
COUNT_FIELDS = {
    "PCM":  "ngpcm",
    "PHOS": "ngphos",
    "EMC":  "ngemc",
}


def cut_pairs(pairtype, cuts1, cuts2):
    '''
    (cut1, cut2) combinations of a pair type in configured order: the diagonal
    for symmetric types, the full cross product otherwise.
    '''
    return [(c1, c2) for c1 in cuts1 for c2 in cuts2 if pairtype.accepts_cut_pair(c1, c2)]


def readout_flags(pairtype):
    return [READOUT_FLAGS[s] for s in dict.fromkeys(pairtype.subsystems) if s in READOUT_FLAGS]


#----------------------------------------------------------------------------------------------------------------------------#

def _select_with_legs(cut, photons):
    return cut.is_selected_v0(photons) & cut.is_selected_leg(photons.posTrack) & cut.is_selected_leg(photons.negTrack)


def _select_cluster(cut, photons):
    return cut.is_selected(photons)


_SELECTORS = {
    "PCM":  _select_with_legs,
    "PHOS": _select_cluster,
    "EMC":  _select_cluster,
}

_PAIR_SELECTORS = {
    pairtype: (_SELECTORS[first], _SELECTORS[second])
    for pairtype, (first, second) in _SUBSYSTEMS.items()
}


def is_selected_pair(pairtype, g1, g2, cut1, cut2):
    '''
    True where the first candidate passes cut1 and the second passes cut2,
    each validated with the rule of its own subsystem. g1 and g2 are aligned
    (flat or jagged) awkward arrays of candidates, or single records.
    '''
    select1, select2 = _PAIR_SELECTORS[PairType.coerce(pairtype)]
    return np.logical_and(select1(cut1, g1), select2(cut2, g2))
