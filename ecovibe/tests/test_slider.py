import unittest

from ecovibe.slider import DRAG_THRESHOLD_PX, INITIAL_POSITION, Slider, clamp_position


class ClampPositionTests(unittest.TestCase):
    def test_clamps_to_range(self):
        self.assertEqual(clamp_position(50, 200), 25.0)
        self.assertEqual(clamp_position(-30, 200), 0.0)
        self.assertEqual(clamp_position(500, 200), 100.0)

    def test_zero_width(self):
        self.assertEqual(clamp_position(10, 0), 0.0)


class SliderTests(unittest.TestCase):
    def test_starts_at_initial_position(self):
        self.assertEqual(Slider().position, INITIAL_POSITION)

    def test_mouse_drag_moves_position(self):
        slider = Slider()
        self.assertFalse(slider.move(150, 0, left=100, width=200))

        slider.press(120)
        self.assertTrue(slider.dragging)
        self.assertTrue(slider.move(200, 0, left=100, width=200))
        self.assertEqual(slider.position, 50.0)

        self.assertTrue(slider.move(400, 0, left=100, width=200))
        self.assertEqual(slider.position, 100.0)

        slider.release()
        self.assertFalse(slider.move(150, 0, left=100, width=200))
        self.assertEqual(slider.position, 100.0)

    def test_vertical_touch_is_left_for_scrolling(self):
        slider = Slider()
        slider.press(100, 100, touch=True)
        self.assertFalse(slider.dragging)

        self.assertFalse(slider.move(103, 140, left=0, width=400, touch=True))
        self.assertFalse(slider.dragging)
        self.assertEqual(slider.position, INITIAL_POSITION)

    def test_horizontal_touch_starts_drag_past_threshold(self):
        slider = Slider()
        slider.press(100, 100, touch=True)

        self.assertFalse(slider.move(105, 101, left=0, width=400, touch=True))
        self.assertTrue(slider.move(200, 102, left=0, width=400, touch=True))
        self.assertTrue(slider.dragging)
        self.assertEqual(slider.position, 50.0)

        slider.release()
        self.assertIsNone(slider.touch_start)

    def test_threshold_is_configurable(self):
        slider = Slider(threshold=30.0)
        self.assertEqual(Slider().threshold, DRAG_THRESHOLD_PX)
        slider.press(100, 100, touch=True)

        self.assertFalse(slider.move(120, 100, left=0, width=400, touch=True))
        self.assertTrue(slider.move(140, 100, left=0, width=400, touch=True))
        self.assertEqual(slider.position, 35.0)

    def test_before_and_after_shortcuts(self):
        slider = Slider()
        slider.show_before()
        self.assertEqual(slider.position, 100.0)
        slider.show_after()
        self.assertEqual(slider.position, 0.0)


if __name__ == "__main__":
    unittest.main()
