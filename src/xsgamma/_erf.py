"""Error functions and their inverses.

Rational approximations from ``boost/math/special_functions/erf.hpp`` and
``detail/erf_inv.hpp`` (John Maddock, 2006). Above 4 the complementary
function uses the approximation of W. J. Cody, "Rational Chebyshev
approximations for the error function", Math. Comp. 1969, pp. 631-638,
which asymptotes to ``1 / (sqrt(pi) x)`` and so also serves ``erfcx``.

Coefficient tables are ordered from the highest power.
"""
import math

from xsgamma._tools import polyval, square_low


__all__ = ["erf", "erf_inv", "erfc", "erfc_inv", "erfcx", "expmxx", "expxx"]


ONE_OVER_ROOT_PI = 0.5641895835477562869480794515607725858
# erfcx(x) ~ 1 / (sqrt(pi) x) above this value.
ERFCX_APPROX = 6.71e7
# erf is computed directly below this |x|, otherwise erfc.
COMPUTE_ERF = 0.5
# Above this -x, 2 * exp(x*x) overflows.
ERFCX_NEG_X_MAX = math.sqrt(math.log(1.7976931348623157e308 / 2))
# exp(x*x) == 1 below this |x|: (1 + 5/16) * 2**-27
EXP_XX_1 = 9.778887033462524e-9
# erf(x) == 1 above this x.
ERF_ONE = 5.9306640625
# erfc(x) == 0 above this x.
ERFC_ZERO = 27.30078125


_ERF_SMALL_C = 0.003379167095512573896158903121545171688
_ERF_Y = 1.044948577880859375
_ERF_P = (
    -0.000322780120964605683831,
    -0.00772758345802133288487,
    -0.0509990735146777432841,
    -0.338165134459360935041,
    0.0834305892146531832907,
)
_ERF_Q = (
    0.000370900071787748000569,
    0.00858571925074406212772,
    0.0875222600142252549554,
    0.455004033050794024546,
    1.0,
)

# erfc on [0.5, 1.5)
_ERFC_05_Y = 0.405935764312744140625
_ERFC_05_P = (
    0.00180424538297014223957,
    0.0195049001251218801359,
    0.0888900368967884466578,
    0.191003695796775433986,
    0.178114665841120341155,
    -0.098090592216281240205,
)
_ERFC_05_Q = (
    0.337511472483094676155e-5,
    0.0113385233577001411017,
    0.12385097467900864233,
    0.578052804889902404909,
    1.42628004845511324508,
    1.84759070983002217845,
    1.0,
)

# erfc on [1.5, 2.5)
_ERFC_15_Y = 0.50672817230224609375
_ERFC_15_P = (
    0.000235839115596880717416,
    0.00323962406290842133584,
    0.0175679436311802092299,
    0.04394818964209516296,
    0.0386540375035707201728,
    -0.0243500476207698441272,
)
_ERFC_15_Q = (
    0.00410369723978904575884,
    0.0563921837420478160373,
    0.325732924782444448493,
    0.982403709157920235114,
    1.53991494948552447182,
    1.0,
)

# erfc on [2.5, 4)
_ERFC_25_Y = 0.5405750274658203125
_ERFC_25_P = (
    0.113212406648847561139e-4,
    0.000250269961544794627958,
    0.00212825620914618649141,
    0.00840807615555585383007,
    0.0137384425896355332126,
    0.00295276716530971662634,
)
_ERFC_25_Q = (
    0.000479411269521714493907,
    0.0105982906484876531489,
    0.0958492726301061423444,
    0.442597659481563127003,
    1.04217814166938418171,
    1.0,
)

# Cody's erfc for x >= 4, in powers of 1/x**2.
_ERFC_CODY_P = (
    1.63153871373020978498e-2,
    3.05326634961232344035e-1,
    3.60344899949804439429e-1,
    1.25781726111229246204e-1,
    1.60837851487422766278e-2,
    6.58749161529837803157e-4,
)
_ERFC_CODY_Q = (
    1.0,
    2.56852019228982242072e00,
    1.87295284992346047209e00,
    5.27905102951428412248e-1,
    6.05183413124413191178e-2,
    2.33520497626869185443e-3,
)


def expxx(x):
    """``exp(x*x)`` including the round-off of ``x*x``.

    No overflow check; only called when ``x*x < log(MAX_VALUE / 2)``.
    """
    a = x * x
    return _exp_split(a, square_low(x, a))


def expmxx(x):
    """``exp(-x*x)`` including the round-off of ``x*x``."""
    a = x * x
    return _exp_split(-a, -square_low(x, a))


def _exp_split(a, b):
    # exp(a + b) = exp(a) * expm1(b) + exp(a), with expm1(b) ~ b for |b| < 6e-14
    ea = math.exp(a)
    return ea * b + ea


def _erf_imp(z, invert, scaled):
    # scaled only applies when z >= 0.5 and invert is true: erfcx(z).
    if math.isnan(z):
        return math.nan
    if z < 0:
        if not invert:
            return -_erf_imp(-z, invert, False)
        if z < -0.5:
            return 2 - _erf_imp(-z, invert, False)
        return 1 + _erf_imp(-z, False, False)

    if z < COMPUTE_ERF:
        if z < 1e-10:
            if z == 0:
                result = z
            else:
                result = z * 1.125 + z * _ERF_SMALL_C
        else:
            zz = z * z
            result = z * (_ERF_Y + polyval(_ERF_P, zz) / polyval(_ERF_Q, zz))
    elif scaled or (z < ERFC_ZERO if invert else z < ERF_ONE):
        invert = not invert
        if z < 4.0:
            if z < 1.5:
                zm = z - 0.5
                result = _ERFC_05_Y + polyval(_ERFC_05_P, zm) / polyval(_ERFC_05_Q, zm)
            elif z < 2.5:
                zm = z - 1.5
                result = _ERFC_15_Y + polyval(_ERFC_15_P, zm) / polyval(_ERFC_15_Q, zm)
            else:
                zm = z - 3.5
                result = _ERFC_25_Y + polyval(_ERFC_25_P, zm) / polyval(_ERFC_25_Q, zm)
            if scaled:
                result /= z
            else:
                result *= expmxx(z) / z
        else:
            izz = 1 / (z * z)
            result = izz * polyval(_ERFC_CODY_P, izz) / polyval(_ERFC_CODY_Q, izz)
            result = (ONE_OVER_ROOT_PI - result) / z
            if not scaled:
                # exp(-z*z) may be subnormal; multiply after the divide.
                result *= expmxx(z)
    else:
        # exp(-z*z) underflows.
        result = 0.0
        invert = not invert

    if invert:
        result = 1 - result
    return result


def erf(x):
    """Error function. Odd: ``erf(-0.0)`` is ``-0.0``."""
    return _erf_imp(x, False, False)


def erfc(x):
    """Complementary error function, ``1 - erf(x)``."""
    return _erf_imp(x, True, False)


def erfcx(x):
    """Scaled complementary error function, ``exp(x*x) * erfc(x)``."""
    if math.isnan(x):
        return math.nan
    ax = abs(x)
    if ax < COMPUTE_ERF:
        erfx = erf(x)
        if ax < EXP_XX_1:
            return 1 - erfx
        # exp(x*x) * (1 - erf(x)) summed from small to large magnitude.
        em1 = math.expm1(x * x)
        return -erfx * em1 + em1 - erfx + 1
    if x < 0:
        # erfcx(x) = 2 exp(x*x) - erfcx(-x)
        if x < -ERFCX_NEG_X_MAX:
            return math.inf
        e = expxx(x)
        return e - _erf_imp(-x, True, True) + e
    if x > ERFCX_APPROX:
        return ONE_OVER_ROOT_PI / x
    return _erf_imp(x, True, True)


# Inverse for p <= 0.5: x = p(p+10)(Y + R(p))
_INV_05_Y = 0.0891314744949340820313
_INV_05_P = (
    -0.00538772965071242932965,
    0.00822687874676915743155,
    0.0219878681111168899165,
    -0.0365637971411762664006,
    -0.0126926147662974029034,
    0.0334806625409744615033,
    -0.00836874819741736770379,
    -0.000508781949658280665617,
)
_INV_05_Q = (
    0.000886216390456424707504,
    -0.00233393759374190016776,
    0.0795283687341571680018,
    -0.0527396382340099713954,
    -0.71228902341542847553,
    0.662328840472002992063,
    1.56221558398423026363,
    -1.56574558234175846809,
    -0.970005043303290640362,
    1.0,
)

# Inverse for 0.25 <= q < 0.5: x = sqrt(-2 log(q)) / (Y + R(q - 0.25))
_INV_025_Y = 2.249481201171875
_INV_025_P = (
    -3.67192254707729348546,
    21.1294655448340526258,
    17.445385985570866523,
    -44.6382324441786960818,
    -18.8510648058714251895,
    17.6447298408374015486,
    8.37050328343119927838,
    0.105264680699391713268,
    -0.202433508355938759655,
)
_INV_025_Q = (
    1.72114765761200282724,
    -22.6436933413139721736,
    10.8268667355460159008,
    48.5609213108739935468,
    -20.1432634680485188801,
    -28.6608180499800029974,
    3.9713437953343869095,
    6.24264124854247537712,
    1.0,
)

# For q < 0.25 with t = sqrt(-log(q)): x = t (Y + R(t - B)) on [B, next B).
_INV_TAIL = (
    (
        3.0,
        0.807220458984375,
        1.125,
        (
            -0.681149956853776992068e-9,
            0.285225331782217055858e-7,
            -0.679465575181126350155e-6,
            0.00214558995388805277169,
            0.0290157910005329060432,
            0.142869534408157156766,
            0.337785538912035898924,
            0.387079738972604337464,
            0.117030156341995252019,
            -0.163794047193317060787,
            -0.131102781679951906451,
        ),
        (
            0.01105924229346489121,
            0.152264338295331783612,
            0.848854343457902036425,
            2.59301921623620271374,
            4.77846592945843778382,
            5.38168345707006855425,
            3.46625407242567245975,
            1.0,
        ),
    ),
    (
        6.0,
        0.93995571136474609375,
        3.0,
        (
            0.266339227425782031962e-11,
            -0.230404776911882601748e-9,
            0.460469890584317994083e-5,
            0.000157544617424960554631,
            0.00187123492819559223345,
            0.00950804701325919603619,
            0.0185573306514231072324,
            -0.00222426529213447927281,
            -0.0350353787183177984712,
        ),
        (
            0.764675292302794483503e-4,
            0.00263861676657015992959,
            0.0341589143670947727934,
            0.220091105764131249824,
            0.762059164553623404043,
            1.3653349817554063097,
            1.0,
        ),
    ),
    (
        18.0,
        0.98362827301025390625,
        6.0,
        (
            0.99055709973310326855e-16,
            -0.281128735628831791805e-13,
            0.462596163522878599135e-8,
            0.449696789927706453732e-6,
            0.149624783758342370182e-4,
            0.000209386317487588078668,
            0.00105628862152492910091,
            -0.00112951438745580278863,
            -0.0167431005076633737133,
        ),
        (
            0.282243172016108031869e-6,
            0.275335474764726041141e-4,
            0.000964011807005165528527,
            0.0160746087093676504695,
            0.138151865749083321638,
            0.591429344886417493481,
            1.0,
        ),
    ),
    (
        # sqrt(-log(MIN_SUBNORMAL)) is 27.28
        math.inf,
        0.99714565277099609375,
        18.0,
        (
            -0.116765012397184275695e-17,
            0.145596286718675035587e-11,
            0.411632831190944208473e-9,
            0.396341011304801168516e-7,
            0.162397777342510920873e-5,
            0.254723037413027451751e-4,
            -0.779190719229053954292e-5,
            -0.0024978212791898131227,
        ),
        (
            0.509761276599778486139e-9,
            0.144437756628144157666e-6,
            0.145007359818232637924e-4,
            0.000690538265622684595676,
            0.0169410838120975906478,
            0.207123112214422517181,
            1.0,
        ),
    ),
)


def _erf_inv_imp(p, q):
    # p in (0, 1) and q = 1 - p
    if p <= 0.5:
        g = p * (p + 10)
        r = polyval(_INV_05_P, p) / polyval(_INV_05_Q, p)
        return g * _INV_05_Y + g * r
    if q >= 0.25:
        xs = q - 0.25
        g = math.sqrt(-2 * math.log(q))
        r = polyval(_INV_025_P, xs) / polyval(_INV_025_Q, xs)
        return g / (_INV_025_Y + r)
    x = math.sqrt(-math.log(q))
    for upper, y, offset, P, Q in _INV_TAIL:
        if x < upper:
            xs = x - offset
            r = polyval(P, xs) / polyval(Q, xs)
            return y * x + r * x
    # x is NaN
    return math.nan


def erf_inv(z):
    """Inverse error function on ``[-1, 1]``; NaN outside it."""
    if not -1 <= z <= 1:
        return math.nan
    if z == int(z):
        # -1, -0.0, 0.0, 1
        return z if z == 0 else z * math.inf
    if z < 0:
        p = -z
        q = 1 - p
        s = -1
    else:
        p = z
        q = 1 - z
        s = 1
    return s * _erf_inv_imp(p, q)


def erfc_inv(z):
    """Inverse complementary error function on ``[0, 2]``; NaN outside it."""
    if not 0 <= z <= 2:
        return math.nan
    if z == int(z):
        # 2 -> -inf, 1 -> 0, 0 -> inf
        return 0.0 if z == 1 else (1 - z) * math.inf
    if z > 1:
        q = 2 - z
        p = 1 - q
        s = -1
    else:
        p = 1 - z
        q = z
        s = 1
    return s * _erf_inv_imp(p, q)
