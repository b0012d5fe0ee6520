"""Unit tests for the scene manager.

Tests cover:
- Unified material ids across material types
- Texture and material validation
- Object registration and primitive flattening
- Building the BVH
- Dict and JSON scene files
"""

import json

import pytest
import taichi as ti


class TestMaterials:
    def test_unified_ids_are_sequential(self):
        from nextweek.scene.manager import MaterialType, SceneManager

        scene = SceneManager()
        ids = [
            scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5)),
            scene.add_metal_material(albedo=(0.8, 0.8, 0.8), fuzz=0.1),
            scene.add_dielectric_material(ior=1.5),
            scene.add_diffuse_light_material(color=(4.0, 4.0, 4.0)),
            scene.add_lambertian_material(albedo=(0.1, 0.2, 0.3)),
        ]
        assert ids == [0, 1, 2, 3, 4]
        assert scene.get_material_count() == 5
        assert scene.get_material_type_python(3) == MaterialType.DIFFUSE_LIGHT
        assert scene.get_material_info(4).type_index == 1
        assert scene.get_material_info(99) is None

    def test_kernel_side_lookup(self):
        from nextweek.scene.manager import (
            MaterialType,
            SceneManager,
            get_material_type,
            get_material_type_index,
        )

        scene = SceneManager()
        scene.add_metal_material(albedo=(0.8, 0.8, 0.8))
        scene.add_dielectric_material()
        glass = scene.add_dielectric_material(ior=1.33)
        types = ti.field(dtype=ti.i32, shape=2)
        indices = ti.field(dtype=ti.i32, shape=2)

        @ti.kernel
        def test_kernel(mat_id: ti.i32):
            types[0] = get_material_type(mat_id)
            indices[0] = get_material_type_index(mat_id)
            types[1] = get_material_type(57)
            indices[1] = get_material_type_index(57)

        test_kernel(glass)
        assert types[0] == int(MaterialType.DIELECTRIC)
        assert indices[0] == 1
        assert indices[1] == -1

    def test_lambertian_needs_exactly_one_source(self):
        from nextweek.scene.manager import SceneManager

        scene = SceneManager()
        tex = scene.add_solid_texture((0.5, 0.5, 0.5))
        with pytest.raises(ValueError):
            scene.add_lambertian_material()
        with pytest.raises(ValueError):
            scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5), texture_id=tex)
        assert scene.add_lambertian_material(texture_id=tex) == 0

    def test_lambertian_albedo_range(self):
        from nextweek.scene.manager import SceneManager

        with pytest.raises(ValueError):
            SceneManager().add_lambertian_material(albedo=(1.5, 0.0, 0.0))

    def test_unknown_texture_rejected(self):
        from nextweek.scene.manager import SceneManager

        scene = SceneManager()
        with pytest.raises(ValueError):
            scene.add_lambertian_material(texture_id=3)
        with pytest.raises(ValueError):
            scene.add_checker_texture(0, 1)

    def test_checker_from_colors(self):
        from nextweek.materials.textures import TextureType
        from nextweek.scene.manager import SceneManager

        scene = SceneManager()
        checker = scene.add_checker_texture((0.2, 0.3, 0.1), (0.9, 0.9, 0.9), scale=5.0)
        assert checker == 2
        assert [t.texture_type for t in scene.textures] == [
            TextureType.SOLID,
            TextureType.SOLID,
            TextureType.CHECKER,
        ]


class TestObjects:
    def test_add_objects(self):
        from nextweek.scene.manager import SceneManager

        scene = SceneManager()
        mat = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        assert scene.add_sphere((0.0, 0.0, -1.0), 0.5, mat) == 0
        assert scene.add_quad((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), mat) == 1
        assert scene.add_box((0.0, 0.0, 0.0), (1.0, 1.0, 1.0), mat, rotate_y=15.0) == 2
        assert scene.add_moving_sphere((0, 0, 0), (0, 1, 0), 0.0, 1.0, 0.2, mat) == 3
        assert scene.get_object_count() == 4
        assert scene.get_primitive_count() == 1 + 1 + 6 + 1

    def test_invalid_material_id(self):
        from nextweek.scene.manager import SceneManager

        scene = SceneManager()
        with pytest.raises(ValueError):
            scene.add_sphere((0.0, 0.0, 0.0), 1.0, 0)
        scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        with pytest.raises(ValueError):
            scene.add_box((0.0, 0.0, 0.0), (1.0, 1.0, 1.0), 1)
        assert scene.get_object_count() == 0

    def test_build(self):
        from nextweek.geometry.bvh import get_bvh_node_count
        from nextweek.scene.intersection import get_primitive_count
        from nextweek.scene.manager import SceneManager

        scene = SceneManager()
        mat = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        for k in range(5):
            scene.add_sphere((float(k), 0.0, -3.0), 0.4, mat)
        assert not scene.is_built
        nodes = scene.build()
        assert scene.is_built
        assert nodes == 9
        assert get_bvh_node_count() == 9
        assert get_primitive_count() == 5

        # Adding an object invalidates the upload
        scene.add_sphere((0.0, 2.0, -3.0), 0.4, mat)
        assert not scene.is_built

    def test_build_empty_scene(self):
        from nextweek.scene.manager import SceneManager

        with pytest.raises(ValueError):
            SceneManager().build()

    def test_clear(self):
        from nextweek.scene.manager import SceneManager

        scene = SceneManager()
        mat = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        scene.add_sphere((0.0, 0.0, 0.0), 1.0, mat)
        scene.build()
        scene.clear()
        assert scene.get_material_count() == 0
        assert scene.get_object_count() == 0
        assert scene.textures == []
        assert not scene.is_built

    def test_build_tracks_shutter_interval(self):
        from nextweek.scene.manager import SceneManager

        scene = SceneManager()
        mat = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        scene.add_moving_sphere((0.0, 0.0, 0.0), (2.0, 0.0, 0.0), 0.0, 1.0, 0.5, mat)
        scene.build(0.0, 1.0)
        assert scene.is_built_for(0.0, 1.0)
        assert not scene.is_built_for(0.0, 0.5)

        scene.ensure_built(0.0, 0.5)
        assert scene.is_built_for(0.0, 0.5)
        assert not scene.is_built_for(0.0, 1.0)

    def test_other_scene_takes_over_registries(self):
        from nextweek.scene.manager import MaterialType, SceneManager, material_types, num_materials

        first = SceneManager()
        mat = first.add_metal_material(albedo=(0.5, 0.5, 0.5))
        first.add_sphere((0.0, 0.0, -2.0), 0.5, mat)
        first.build()
        assert first.is_resident

        second = SceneManager()
        assert second.is_resident
        assert not first.is_resident
        assert not first.is_built
        assert num_materials[None] == 0

        first.ensure_built()
        assert first.is_built
        assert not second.is_resident
        assert num_materials[None] == 1
        assert material_types[0] == int(MaterialType.METAL)


class TestSerialization:
    def _build_scene(self):
        from nextweek.scene.manager import SceneManager

        scene = SceneManager()
        checker = scene.add_checker_texture((0.2, 0.3, 0.1), (0.9, 0.9, 0.9))
        floor = scene.add_lambertian_material(texture_id=checker)
        metal = scene.add_metal_material(albedo=(0.7, 0.6, 0.5), fuzz=0.2)
        glass = scene.add_dielectric_material(ior=1.5)
        light = scene.add_diffuse_light_material(color=(7.0, 7.0, 7.0))
        scene.add_quad((-1.0, -1.0, -1.0), (2.0, 0.0, 0.0), (0.0, 0.0, -2.0), floor)
        scene.add_sphere((0.0, 0.0, -2.0), 0.5, metal)
        scene.add_moving_sphere((1.0, 0.0, -2.0), (1.0, 0.5, -2.0), 0.0, 1.0, 0.3, glass)
        scene.add_box((0.0, 0.0, 0.0), (0.5, 0.5, 0.5), light, rotate_y=-18.0, translate=(0, 0, -3))
        return scene

    def test_to_dict_structure(self):
        data = self._build_scene().to_dict()
        assert [t["type"] for t in data["textures"]] == ["solid", "solid", "checker", "solid"]
        assert [m["type"] for m in data["materials"]] == [
            "lambertian",
            "metal",
            "dielectric",
            "diffuse_light",
        ]
        assert [o["type"] for o in data["objects"]] == [
            "quad",
            "sphere",
            "moving_sphere",
            "translate",
        ]
        rotate = data["objects"][3]["child"]
        assert rotate["type"] == "rotate"
        assert rotate["axis"] == "y"
        assert rotate["child"]["type"] == "box"
        json.dumps(data)

    def test_dict_round_trip(self):
        from nextweek.scene.manager import SceneManager

        data = self._build_scene().to_dict()
        restored = SceneManager()
        restored.from_dict(data)
        assert restored.to_dict() == data
        assert restored.get_primitive_count() == 1 + 1 + 1 + 6

    def test_unknown_types_rejected(self):
        from nextweek.scene.manager import SceneManager, hittable_from_dict

        with pytest.raises(ValueError):
            SceneManager().from_dict({"materials": [{"type": "plastic"}]})
        with pytest.raises(ValueError):
            hittable_from_dict({"type": "torus"})
        with pytest.raises(ValueError):
            hittable_from_dict({"type": "rotate", "axis": "w", "angle": 1.0, "child": {}})

    def test_in_memory_image_not_serializable(self):
        import numpy as np

        from nextweek.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_image_texture(np.ones((2, 2, 3), dtype=np.float32))
        with pytest.raises(ValueError):
            scene.to_dict()


class TestSceneFiles:
    def test_save_and_load(self, tmp_path):
        from nextweek.camera.thin_lens import Camera
        from nextweek.scene.manager import Scene, SceneManager, load_scene_file, save_scene_file

        manager = SceneManager()
        mat = manager.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        manager.add_sphere((0.0, 0.0, -1.0), 0.5, mat)
        camera = Camera(look_from=(0.0, 1.0, 1.0), vfov=60.0, time1=1.0)
        path = tmp_path / "scene.json"
        save_scene_file(Scene(manager, camera), path)

        loaded = load_scene_file(path)
        assert loaded.camera == camera
        assert loaded.manager.get_object_count() == 1
        assert loaded.manager.get_material_count() == 1

    def test_missing_camera_uses_default(self, tmp_path):
        from nextweek.camera.thin_lens import Camera
        from nextweek.scene.manager import load_scene_file

        path = tmp_path / "scene.json"
        path.write_text(json.dumps({"materials": [{"type": "dielectric"}], "objects": []}))
        scene = load_scene_file(path)
        assert scene.camera == Camera()
        assert scene.manager.get_material_count() == 1

    def test_invalid_json(self, tmp_path):
        from nextweek.scene.manager import load_scene_file

        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(ValueError):
            load_scene_file(path)

    def test_not_an_object(self, tmp_path):
        from nextweek.scene.manager import load_scene_file

        path = tmp_path / "list.json"
        path.write_text("[1, 2, 3]")
        with pytest.raises(ValueError):
            load_scene_file(path)

    def test_missing_file(self, tmp_path):
        from nextweek.scene.manager import load_scene_file

        with pytest.raises(OSError):
            load_scene_file(tmp_path / "absent.json")
