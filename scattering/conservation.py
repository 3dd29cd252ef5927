# conservation.py
# Quantum-number bookkeeping for channels and decay branches.
#
# Channel tables and decay tables are written by hand; every branch is
# checked here before it is handed to the interaction finder.


def check_quantum_numbers(initial_types, final_types):
    """Return diagnostic dict for charge, baryon number and strangeness.

    Returns dict with the differences (initial - final) and a boolean
    'conserved' key summarizing the result.
    """
    dQ = sum(p.charge for p in initial_types) - sum(p.charge for p in final_types)
    dB = sum(p.baryon_number for p in initial_types) - sum(p.baryon_number for p in final_types)
    dS = sum(p.strangeness for p in initial_types) - sum(p.strangeness for p in final_types)
    return {
        'conserved': dQ == 0 and dB == 0 and dS == 0,
        'deltaQ': dQ,
        'deltaB': dB,
        'deltaS': dS,
    }


def describe_violation(initial_types, final_types):
    """Human-readable summary of a non-conserving process, '' if it conserves everything."""
    diag = check_quantum_numbers(initial_types, final_types)
    if diag['conserved']:
        return ""
    process = "".join(p.name for p in initial_types) + " → " + "".join(p.name for p in final_types)
    return f"{process} violates ΔQ={diag['deltaQ']}, ΔB={diag['deltaB']}, ΔS={diag['deltaS']}"


def kinematically_allowed(sqrts: float, final_types) -> bool:
    """Pole-mass threshold: √s must cover the summed rest masses."""
    return sqrts >= sum(p.mass for p in final_types)
