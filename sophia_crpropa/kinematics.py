"""Kinematics utilities: Lorentz boosts, rotations and two-body helpers.

All functions are pure. Four-vectors are ordered (px, py, pz, E) and
five-vectors append the mass, (px, py, pz, E, m).
"""

from math import sqrt, cos, sin, pi


def lambda_function(x, y, z):
    """Kallen function lambda(x, y, z)."""
    return x * x + y * y + z * z - 2. * (x * y + x * z + y * z)


def two_body_momentum(M, m1, m2):
    """CM momentum of a two-body decay M -> m1 + m2.

    Returns None when the decay is kinematically closed.
    """
    if M < m1 + m2:
        return None
    lam = lambda_function(M * M, m1 * m1, m2 * m2)
    return sqrt(max(lam, 0.)) / (2. * M)


def boost(gamma, gbx, gby, gbz, px, py, pz, E):
    """Boost a four-vector with four-velocity (gamma, gamma*beta).

    Returns (px', py', pz', E', |p'|).
    """
    bp = gbx * px + gby * py + gbz * pz
    Eb = gamma * E + bp
    fac = bp / (gamma + 1.) + E
    qx = px + gbx * fac
    qy = py + gby * fac
    qz = pz + gbz * fac
    return qx, qy, qz, Eb, sqrt(qx * qx + qy * qy + qz * qz)


def rotate(x, y, z, cth, sth, cph, sph):
    """Rotation about the y axis by theta followed by the z axis by phi."""
    xr = cth * x + sth * z
    zr = -sth * x + cth * z
    return cph * xr - sph * y, sph * xr + cph * y, zr


def direction_angles(px, py, pz):
    """cos/sin of polar and azimuthal angle of a three-vector."""
    pt = sqrt(px * px + py * py)
    p = sqrt(pt * pt + pz * pz)
    if p == 0.:
        return 1., 0., 1., 0.
    cth, sth = pz / p, pt / p
    if pt == 0.:
        return cth, sth, 1., 0.
    return cth, sth, px / pt, py / pt


def invariant_mass2(p):
    return p[3] * p[3] - p[0] * p[0] - p[1] * p[1] - p[2] * p[2]


def four_velocity(p):
    """(gamma, gamma*beta) of a system with four-momentum ``p``."""
    m2 = invariant_mass2(p)
    if m2 <= 0.:
        return None
    m = sqrt(m2)
    return p[3] / m, p[0] / m, p[1] / m, p[2] / m


def boost_vector(p, velocity, inverse=False):
    """Boost a four- or five-vector ``p`` with ``velocity`` from four_velocity.

    ``inverse=True`` boosts into the rest frame of the system.
    """
    gamma, gbx, gby, gbz = velocity
    if inverse:
        gbx, gby, gbz = -gbx, -gby, -gbz
    return boost(gamma, gbx, gby, gbz, p[0], p[1], p[2], p[3])[:4]


def mass_shell_rescale(p1, p2, m1, m2):
    """Put two momenta on the mass shells m1, m2.

    The pair's total four-momentum and the direction of the first momentum in
    the pair rest frame are preserved. Returns two five-vectors or None when
    the pair mass is below m1 + m2.
    """
    P = [p1[i] + p2[i] for i in range(4)]
    velocity = four_velocity(P)
    if velocity is None:
        return None
    M = sqrt(invariant_mass2(P))
    pstar = two_body_momentum(M, m1, m2)
    if pstar is None:
        return None

    qx, qy, qz, _ = boost_vector(p1, velocity, inverse=True)
    q = sqrt(qx * qx + qy * qy + qz * qz)
    if q > 0.:
        ux, uy, uz = qx / q, qy / q, qz / q
    else:
        ux, uy, uz = 0., 0., 1.

    E1 = sqrt(m1 * m1 + pstar * pstar)
    E2 = sqrt(m2 * m2 + pstar * pstar)
    k1 = boost_vector((pstar * ux, pstar * uy, pstar * uz, E1), velocity)
    k2 = boost_vector((-pstar * ux, -pstar * uy, -pstar * uz, E2), velocity)
    return [k1[0], k1[1], k1[2], k1[3], m1], [k2[0], k2[1], k2[2], k2[3], m2]


def isotropic_two_body(rng, M, m1, m2):
    """Isotropic decay at rest, returns two five-vectors or None if closed."""
    p = two_body_momentum(M, m1, m2)
    if p is None:
        return None
    cth = 2. * rng.uniform() - 1.
    sth = sqrt(max(0., 1. - cth * cth))
    phi = 2. * pi * rng.uniform()
    px, py, pz = p * sth * cos(phi), p * sth * sin(phi), p * cth
    return ([px, py, pz, sqrt(p * p + m1 * m1), m1],
            [-px, -py, -pz, sqrt(p * p + m2 * m2), m2])
