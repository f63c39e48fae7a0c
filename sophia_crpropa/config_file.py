"""A configuration file for the photopion interaction module

19.10.2026 - Leonel Morejon
"""

# Default seed of the shared uniform generator
seed = 19780511

# Capacities of the particle records
max_sophia_entries = 2000
max_lund_entries = 4000

# Retry caps, exhausting any of them aborts the event
max_s_attempts = 100000         # invariant mass rejection sampling
max_multipion_attempts = 50     # full multipion fragmentation retries
max_string_attempts = 200       # breaking of a single string
max_z_attempts = 1000           # Lund z sampling
max_flavour_attempts = 100      # flavour / hadron choice
max_kinematics_attempts = 100   # parton momentum fractions
max_decay_attempts = 1000       # phase space and matrix element weights
max_rescale_iterations = 10     # independent fragmentation energy rescaling
max_mass_attempts = 1000        # Breit-Wigner mass sampling
max_collapse_iterations = 100   # small system collapse and colour walks

# Conservation check of every event
check_conservation = True
conservation_tolerance = 1e-3
mass_shell_tolerance = 1e-4     # GeV^2

# Resonant decay products get Breit-Wigner masses instead of table masses
smear_resonance_masses = False

# Primordial transverse momentum of the string end partons (GeV)
parton_pt_width = 0.3

# String fragmentation parameters
lund_parameters = {
    'baryon_fraction': 0.10,         # P(qq)/P(q)
    'strange_fraction': 0.30,        # P(s)/P(u)
    'strange_diquark_fraction': 0.40,  # P(us)/P(ud)
    'spin1_diquark_fraction': 0.05,  # P(ud_1)/P(ud_0), before spin counting
    'vector_fraction_light': 0.50,   # V/(V+PS) for u, d
    'vector_fraction_strange': 0.60,  # V/(V+PS) with strange quarks
    'decuplet_suppression': 1.0,
    'eta_suppression': 1.0,
    'etaprime_suppression': 0.4,
    'lund_a': 0.3,
    'lund_b': 0.58,                  # GeV^-2
    'lund_a_diquark': 0.5,
    'pt_width': 0.36,                # GeV, Gaussian width of hadron pT
    'stop_mass': 0.8,                # GeV, string breaking stops below this plus end masses
    'collapse_mass': 1.0,            # GeV, smaller systems collapse into one or two hadrons
    'stop_smearing': 0.2,
    'independent_cutoff': 0.1,       # GeV, remaining E+p to stop a jet
    'compensation_scheme': 1,        # 1 energy, 2 transverse mass, 3 uniform
    'fragmentation_model': 'string',  # 'string' or 'independent'
    'popcorn': False,                # diquark breaking into a meson and a new diquark
    'popcorn_fraction': 0.5,         # share of popcorn breaks at a diquark end
    'junction_fraction': 0.1,        # pomeron events with the nucleon diquark split at a junction
}

# Secondaries a propagation code keeps, as SOPHIA codes
allowed_secondaries = [
    1,              # gamma
    2, 3,           # positron, electron
    13, 14,         # proton, neutron
    -13, -14,       # antiproton, antineutron
    15, 16, 17, 18,  # neutrinos
]
