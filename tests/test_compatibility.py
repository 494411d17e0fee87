import unittest

from drone_fleet.services.compatibility import (
    get_compatible_models,
    is_accessory_compatible,
    models_for_manufacturer,
)


class _Exploding:
    def __iter__(self):
        raise RuntimeError("broken row")


class CompatibleModelsTests(unittest.TestCase):
    def test_known_model_maps_to_family(self):
        self.assertEqual(get_compatible_models("Mavic 3 Pro"), ["Mavic 3"])
        self.assertEqual(get_compatible_models("Matrice 350 RTK"), ["Matrice 300"])

    def test_lookup_ignores_case(self):
        self.assertEqual(get_compatible_models("mavic 3 pro"), ["Mavic 3"])

    def test_unknown_model_is_its_own_family(self):
        self.assertEqual(get_compatible_models("Custom Hexa 9"), ["Custom Hexa 9"])

    def test_no_model(self):
        self.assertEqual(get_compatible_models(None), [])
        self.assertEqual(get_compatible_models(""), [])

    def test_multi_family_model(self):
        self.assertEqual(get_compatible_models("Dahua X1200"), ["X820", "X1200"])


class AccessoryCompatibilityTests(unittest.TestCase):
    def test_family_match(self):
        # Mavic 3 battery offered for a Mavic 3 Pro
        self.assertTrue(is_accessory_compatible(["Mavic 3"], "Mavic 3 Pro"))

    def test_nd_filters_for_phantom(self):
        self.assertTrue(is_accessory_compatible(["Phantom 4"], "Phantom 4"))
        self.assertTrue(is_accessory_compatible(["Phantom 4"], "Phantom 4 Pro V2.0"))
        self.assertFalse(is_accessory_compatible(["Phantom 4"], "Mavic 3"))

    def test_substring_match_both_directions(self):
        self.assertTrue(is_accessory_compatible(["Matrice 300 RTK"], "Matrice 300"))
        self.assertTrue(is_accessory_compatible(["Air"], "DJI Air 2S"))

    def test_match_ignores_case(self):
        self.assertTrue(is_accessory_compatible(["mavic 3"], "MAVIC 3 CLASSIC"))

    def test_unknown_model_uses_itself(self):
        self.assertTrue(is_accessory_compatible(["Custom Hexa"], "Custom Hexa 9"))
        self.assertFalse(is_accessory_compatible(["Mavic 3"], "Custom Hexa 9"))

    def test_dahua_x1200_accepts_x820_parts(self):
        self.assertTrue(is_accessory_compatible(["X820"], "Dahua X1200"))

    def test_no_restriction_is_compatible(self):
        self.assertTrue(is_accessory_compatible(None, "Mavic 3"))
        self.assertTrue(is_accessory_compatible([], "Mavic 3"))

    def test_no_model_is_compatible(self):
        self.assertTrue(is_accessory_compatible(["Mavic 3"], None))
        self.assertTrue(is_accessory_compatible(["Mavic 3"], ""))

    def test_bad_input_fails_open(self):
        self.assertTrue(is_accessory_compatible(42, "Mavic 3"))
        self.assertTrue(is_accessory_compatible(_Exploding(), "Mavic 3"))
        self.assertTrue(is_accessory_compatible(["Mavic 3"], 1234))


class ManufacturerModelsTests(unittest.TestCase):
    def test_models_for_manufacturer(self):
        self.assertIn("DJI Mini 3", models_for_manufacturer("DJI"))
        self.assertIn("Dahua X1200", models_for_manufacturer("Dahua"))
        self.assertEqual(models_for_manufacturer("Nobody"), [])
        self.assertEqual(models_for_manufacturer(None), [])
