"""Lanczos approximation to the gamma function, N=13.

Coefficients for G=6.024680040776729583740234375 as computed by Godfrey's
method at 1000 bit precision (Pugh, "An Analysis of the Lanczos Gamma
Approximation", 2004). Maximum experimental error 1.196214e-17.
"""


__all__ = ["G", "GMH", "lanczos_sum", "lanczos_sum_exp_g_scaled"]


G = 6.024680040776729583740234375
# G - 0.5
GMH = 5.524680040776729583740234375

_DENOM = (
    0,
    39916800,
    120543840,
    150917976,
    105258076,
    45995730,
    13339535,
    2637558,
    357423,
    32670,
    1925,
    66,
    1,
)

_NUM = (
    23531376880.41075968857200767445163675473,
    42919803642.64909876895789904700198885093,
    35711959237.35566804944018545154716670596,
    17921034426.03720969991975575445893111267,
    6039542586.35202800506429164430729792107,
    1439720407.311721673663223072794912393972,
    248874557.8620541565114603864132294232163,
    31426415.58540019438061423162831820536287,
    2876370.628935372441225409051620849613599,
    186056.2653952234950402949897160456992822,
    8071.672002365816210638002902272250613822,
    210.8242777515793458725097339207133627117,
    2.506628274631000270164908177133837338626,
)

# _NUM divided by exp(G).
_NUM_EXP_G_SCALED = (
    56906521.91347156388090791033559122686859,
    103794043.1163445451906271053616070238554,
    86363131.28813859145546927288977868422342,
    43338889.32467613834773723740590533316085,
    14605578.08768506808414169982791359218571,
    3481712.15498064590882071018964774556468,
    601859.6171681098786670226533699352302507,
    75999.29304014542649875303443598909137092,
    6955.999602515376140356310115515198987526,
    449.9445569063168119446858607650988409623,
    19.51992788247617482847860966235652136208,
    0.5098416655656676188125178644804694509993,
    0.006061842346248906525783753964555936883222,
)


def _evaluate_rational(a, b, x):
    # Second order Horner scheme: even and odd powers are accumulated
    # separately in x**2, or in 1/x**2 when x > 1.
    if x <= 1:
        x2 = x * x
        t0 = a[12] * x2 + a[10]
        t1 = a[11] * x2 + a[9]
        t2 = b[12] * x2 + b[10]
        t3 = b[11] * x2 + b[9]
        for even, odd in ((8, 7), (6, 5), (4, 3), (2, 1)):
            t0 = t0 * x2 + a[even]
            t1 = t1 * x2 + a[odd]
            t2 = t2 * x2 + b[even]
            t3 = t3 * x2 + b[odd]
        t0 = t0 * x2 + a[0]
        t2 = t2 * x2 + b[0]
        t1 *= x
        t3 *= x
        return (t0 + t1) / (t2 + t3)
    z = 1 / x
    z2 = 1 / (x * x)
    t0 = a[0] * z2 + a[2]
    t1 = a[1] * z2 + a[3]
    t2 = b[0] * z2 + b[2]
    t3 = b[1] * z2 + b[3]
    for even, odd in ((4, 5), (6, 7), (8, 9), (10, 11)):
        t0 = t0 * z2 + a[even]
        t1 = t1 * z2 + a[odd]
        t2 = t2 * z2 + b[even]
        t3 = t3 * z2 + b[odd]
    t0 = t0 * z2 + a[12]
    t2 = t2 * z2 + b[12]
    t1 *= z
    t3 *= z
    return (t0 + t1) / (t2 + t3)


def lanczos_sum(z):
    """Rational part of the approximation ``Gamma(z) ~ L(z) (z+G-0.5)**(z-0.5) / e**(z+G-0.5)``."""
    return _evaluate_rational(_NUM, _DENOM, z)


def lanczos_sum_exp_g_scaled(z):
    """`lanczos_sum` divided by ``exp(G)``."""
    return _evaluate_rational(_NUM_EXP_G_SCALED, _DENOM, z)
