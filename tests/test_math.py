#!/usr/bin/env python3
"""
Unit tests for units, vectors, orientation transform and angle helpers.
"""

import unittest
import math
import numpy as np
import sys
import os

# Add package to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from drfusion.errors import UnitMismatchError
from drfusion.math import units
from drfusion.math.units import Measurement, unit_from_symbol
from drfusion.math.vector import Vector3
from drfusion.math.transform import (
    transform,
    relabel_axes,
    is_rotation_matrix,
    rotation_matrix_from_euler,
)
from drfusion.math.utils import (
    wrap_degrees,
    wrap_longitude,
    clamp_latitude,
    haversine_distance,
    calculate_bearing,
)

class TestMeasurement(unittest.TestCase):
    """Test unit-tagged scalars."""

    def test_speed_conversion(self):
        """Test conversion between speed units."""
        s = Measurement(36.0, units.KILOMETERS_PER_HOUR)
        self.assertAlmostEqual(s.converted(units.METERS_PER_SECOND).value, 10.0)
        self.assertAlmostEqual(Measurement(1.0, units.KNOTS).value_in(units.METERS_PER_SECOND), 0.514444, places=5)

    def test_gravity_conversion(self):
        """Test g to m/s² conversion."""
        a = Measurement(1.0, units.GRAVITY)
        self.assertAlmostEqual(a.value_in(units.METERS_PER_SECOND_SQUARED), 9.80665)

    def test_cross_dimension_conversion_raises(self):
        """Test that speed cannot be converted to acceleration."""
        with self.assertRaises(UnitMismatchError):
            Measurement(1.0, units.METERS_PER_SECOND).converted(units.GRAVITY)

    def test_arithmetic_keeps_left_unit(self):
        """Test addition converts the right operand into the left unit."""
        total = Measurement(1.0, units.METERS_PER_SECOND) + Measurement(3.6, units.KILOMETERS_PER_HOUR)
        self.assertEqual(total.unit, units.METERS_PER_SECOND)
        self.assertAlmostEqual(total.value, 2.0)

        self.assertAlmostEqual((Measurement(2.0, units.METERS_PER_SECOND) * 3).value, 6.0)
        self.assertAlmostEqual((Measurement(6.0, units.METERS_PER_SECOND) / 3).value, 2.0)

        with self.assertRaises(UnitMismatchError):
            Measurement(1.0, units.METERS_PER_SECOND) + Measurement(1.0, units.RADIANS)

    def test_comparisons(self):
        """Test comparisons across units of one dimension."""
        self.assertLess(Measurement(1.0, units.METERS_PER_SECOND), Measurement(4.0, units.KILOMETERS_PER_HOUR))
        self.assertGreater(Measurement(1.0, units.GRAVITY), Measurement(9.0, units.METERS_PER_SECOND_SQUARED))

    def test_dict_round_trip(self):
        """Test serialization via unit symbols."""
        m = Measurement(12.5, units.KILOMETERS_PER_HOUR)
        self.assertEqual(Measurement.from_dict(m.to_dict()), m)

    def test_unit_lookup(self):
        """Test unit lookup by symbol."""
        self.assertIs(unit_from_symbol("g"), units.GRAVITY)
        self.assertIs(unit_from_symbol("m/s^2"), units.METERS_PER_SECOND_SQUARED)
        with self.assertRaises(KeyError):
            unit_from_symbol("furlongs/fortnight")

class TestVector3(unittest.TestCase):
    """Test Vector3 class."""

    def test_construction(self):
        """Test componentwise construction."""
        v = Vector3(1, 2, 3, units.METERS_PER_SECOND_SQUARED)
        self.assertEqual((v.x, v.y, v.z), (1.0, 2.0, 3.0))
        self.assertIsInstance(v.x, float)

        w = Vector3.from_array(np.array([1.0, 2.0, 3.0]), units.METERS_PER_SECOND_SQUARED)
        self.assertEqual(v, w)

        with self.assertRaises(ValueError):
            Vector3.from_array([1.0, 2.0], units.METERS_PER_SECOND_SQUARED)

    def test_immutable(self):
        """Test that vectors cannot be mutated."""
        v = Vector3(1, 2, 3, units.METERS_PER_SECOND)
        with self.assertRaises(AttributeError):
            v.x = 10.0

    def test_typed_arithmetic(self):
        """Test addition converts into the left operand's unit."""
        a = Vector3(1.0, 0.0, 0.0, units.METERS_PER_SECOND_SQUARED)
        b = Vector3(1.0, 0.0, 0.0, units.GRAVITY)
        c = a + b
        self.assertEqual(c.unit, units.METERS_PER_SECOND_SQUARED)
        self.assertAlmostEqual(c.x, 1.0 + 9.80665)

        scaled = a * 0.5
        self.assertAlmostEqual(scaled.x, 0.5)

        with self.assertRaises(UnitMismatchError):
            a + Vector3(1.0, 0.0, 0.0, units.METERS_PER_SECOND)

    def test_norms(self):
        """Test full and horizontal norms."""
        v = Vector3(3.0, 4.0, 12.0, units.METERS_PER_SECOND)
        self.assertAlmostEqual(v.norm(), 13.0)
        self.assertAlmostEqual(v.horizontal_norm(), 5.0)

    def test_is_finite(self):
        """Test finiteness check."""
        self.assertTrue(Vector3(1, 2, 3, units.METERS_PER_SECOND).is_finite())
        self.assertFalse(Vector3(1, float('nan'), 3, units.METERS_PER_SECOND).is_finite())
        self.assertFalse(Vector3(float('inf'), 0, 0, units.METERS_PER_SECOND).is_finite())

class TestTransform(unittest.TestCase):
    """Test orientation transform."""

    def test_identity(self):
        """Test identity rotation leaves the vector unchanged."""
        v = Vector3(1.0, 2.0, 3.0, units.GRAVITY)
        self.assertEqual(transform(np.eye(3), v), v)

    def test_yaw_quarter_turn(self):
        """Test a 90° yaw rotates X onto Y."""
        R = rotation_matrix_from_euler(math.pi / 2, 0.0, 0.0)
        out = transform(R, Vector3(1.0, 0.0, 0.0, units.METERS_PER_SECOND_SQUARED))
        np.testing.assert_allclose(out.as_array(), [0.0, 1.0, 0.0], atol=1e-12)

    def test_accepts_nested_lists(self):
        """Test row-major nested sequences."""
        R = [[0.0, 1.0, 0.0], [1.0, 0.0, 0.0], [0.0, 0.0, 1.0]]
        out = transform(R, Vector3(1.0, 2.0, 3.0, units.METERS_PER_SECOND_SQUARED))
        self.assertEqual((out.x, out.y, out.z), (2.0, 1.0, 3.0))

    def test_preserves_norm_and_unit(self):
        """Test rotation preserves magnitude and unit for many rotations."""
        rng = np.random.default_rng(42)
        for _ in range(100):
            yaw, pitch, roll = rng.uniform(-math.pi, math.pi, size=3)
            R = rotation_matrix_from_euler(yaw, pitch, roll)
            self.assertTrue(is_rotation_matrix(R))

            v = Vector3.from_array(rng.normal(size=3) * 5.0, units.GRAVITY)
            out = transform(R, v)

            self.assertEqual(out.unit, units.GRAVITY)
            self.assertAlmostEqual(out.norm(), v.norm(), places=9)

    def test_relabel_axes(self):
        """Test the north axis swap is an involution."""
        v = Vector3(1.0, 2.0, 3.0, units.METERS_PER_SECOND_SQUARED)
        swapped = relabel_axes(v)
        self.assertEqual((swapped.x, swapped.y, swapped.z), (2.0, 1.0, 3.0))
        self.assertEqual(relabel_axes(swapped), v)

    def test_is_rotation_matrix_rejects(self):
        """Test detection of non-rotations."""
        self.assertFalse(is_rotation_matrix(np.eye(3) * 2.0))
        self.assertFalse(is_rotation_matrix(np.eye(2)))
        self.assertFalse(is_rotation_matrix(np.diag([1.0, 1.0, -1.0])))

        R = np.eye(3)
        R[0, 0] = np.nan
        self.assertFalse(is_rotation_matrix(R))

class TestAngleUtils(unittest.TestCase):
    """Test angle and geodesy helpers."""

    def test_wrap_degrees(self):
        self.assertAlmostEqual(wrap_degrees(-90.0), 270.0)
        self.assertAlmostEqual(wrap_degrees(720.5), 0.5)
        self.assertEqual(wrap_degrees(-1e-17), 0.0)

    def test_wrap_longitude(self):
        self.assertEqual(wrap_longitude(10.0), 10.0)
        self.assertAlmostEqual(wrap_longitude(181.0), -179.0)
        self.assertAlmostEqual(wrap_longitude(-181.0), 179.0)
        self.assertEqual(wrap_longitude(180.0), -180.0)

    def test_clamp_latitude(self):
        self.assertEqual(clamp_latitude(91.0), 90.0)
        self.assertEqual(clamp_latitude(-95.0), -90.0)
        self.assertEqual(clamp_latitude(45.0), 45.0)

    def test_haversine_and_bearing(self):
        """Test one degree of latitude northwards."""
        d = haversine_distance(0.0, 0.0, 1.0, 0.0)
        self.assertAlmostEqual(d, 6378137.0 * math.pi / 180.0, places=3)
        self.assertAlmostEqual(calculate_bearing(0.0, 0.0, 1.0, 0.0), 0.0)
        self.assertAlmostEqual(calculate_bearing(0.0, 0.0, 0.0, 1.0), 90.0)
        self.assertAlmostEqual(calculate_bearing(0.0, 0.0, 0.0, -1.0), 270.0)

if __name__ == '__main__':
    unittest.main()
