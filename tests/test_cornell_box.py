"""Tests for the sample scene factories."""

import pytest


class TestCornellBoxScene:
    def test_object_counts(self):
        from nextweek.scene.cornell_box import create_cornell_box_scene
        from nextweek.scene.manager import MaterialType

        scene = create_cornell_box_scene()
        manager = scene.manager
        assert manager.get_object_count() == 9
        assert manager.get_primitive_count() == 9
        types = [manager.get_material_type_python(i) for i in range(manager.get_material_count())]
        assert types.count(MaterialType.DIFFUSE_LIGHT) == 2
        assert types.count(MaterialType.METAL) == 1

    def test_custom_params(self):
        from nextweek.scene.cornell_box import CornellBoxParams, create_cornell_box_scene

        params = CornellBoxParams(light_radiance=(15.0, 14.0, 12.0), metal_sphere_fuzz=0.5)
        data = create_cornell_box_scene(params=params).manager.to_dict()
        lights = [m for m in data["materials"] if m["type"] == "diffuse_light"]
        metals = [m for m in data["materials"] if m["type"] == "metal"]
        assert lights[0]["texture"] is not None
        assert metals[0]["fuzz"] == pytest.approx(0.5)

    def test_camera(self):
        from nextweek.scene.cornell_box import create_cornell_box_scene

        camera = create_cornell_box_scene(aspect_ratio=2.0).camera
        assert camera.look_from == (0.0, 0.0, 0.0)
        assert camera.look_at == (0.0, 0.0, -1.0)
        assert camera.vfov == pytest.approx(90.0)
        assert camera.aspect_ratio == pytest.approx(2.0)

    def test_builds(self):
        from nextweek.scene.cornell_box import create_cornell_box_scene

        scene = create_cornell_box_scene()
        assert scene.manager.build() > 0
        assert scene.manager.is_built


class TestNextWeekScene:
    def test_contents(self):
        from nextweek.scene.cornell_box import create_next_week_scene

        scene = create_next_week_scene()
        data = scene.manager.to_dict()
        kinds = [obj["type"] for obj in data["objects"]]
        assert kinds.count("quad") == 6
        assert kinds.count("translate") == 2
        assert kinds.count("moving_sphere") == 1
        assert kinds.count("sphere") == 1
        assert "checker" in [t["type"] for t in data["textures"]]
        # 6 room quads, 2 boxes of 6 faces and 2 spheres
        assert scene.manager.get_primitive_count() == 6 + 12 + 2

    def test_shutter_interval(self):
        from nextweek.scene.cornell_box import create_next_week_scene

        camera = create_next_week_scene().camera
        assert (camera.time0, camera.time1) == (0.0, 1.0)

    def test_builds(self):
        from nextweek.scene.cornell_box import create_next_week_scene

        assert create_next_week_scene().manager.build() > 0


class TestSceneRegistry:
    @pytest.mark.parametrize("name", ["cornell", "nextweek"])
    def test_create_scene(self, name):
        from nextweek.scene.cornell_box import create_scene

        scene = create_scene(name, aspect_ratio=1.5)
        assert scene.camera.aspect_ratio == pytest.approx(1.5)

    def test_unknown_scene(self):
        from nextweek.scene.cornell_box import create_scene

        with pytest.raises(ValueError, match="Unknown scene"):
            create_scene("bunny")


class TestBounds:
    def test_bounds(self):
        from nextweek.scene.cornell_box import get_cornell_box_bounds

        bounds = get_cornell_box_bounds()
        assert bounds["min"] == (-1.0, -1.0, -2.8)
        assert bounds["max"] == (1.0, 1.0, -0.8)
        assert bounds["center"] == pytest.approx((0.0, 0.0, -1.8))
        assert bounds["size"] == pytest.approx((2.0, 2.0, 2.0))
