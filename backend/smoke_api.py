import requests
import os
import json

BASE_URL = "http://localhost:8000/api"
ADMIN_HEADERS = {"X-Admin-Token": os.environ.get("MATERIALS_ADMIN_TOKEN", "")}

def print_response(response, title):
    print(f"\n=== {title} ===")
    print(f"Status Code: {response.status_code}")
    try:
        print("Response:", json.dumps(response.json(), indent=2))
    except ValueError:
        print("Response:", response.text)
    print("=" * 50)

def check_list_sections():
    """Test GET /api/sections/ endpoint"""
    response = requests.get(f"{BASE_URL}/sections/")
    print_response(response, "List Sections")
    return response

def check_create_section():
    """Test POST /api/sections/ endpoint"""
    response = requests.post(f"{BASE_URL}/sections/", json={"name": "Smoke Test Section"}, headers=ADMIN_HEADERS)
    print_response(response, "Create Section")
    return response

def check_create_youtube_material(section_id):
    """Test POST /api/materials/ endpoint with a YouTube link"""
    data = {
        "section_id": section_id,
        "title": "Smoke test video",
        "file_type": "youtube",
        "file_url": "https://youtu.be/dQw4w9WgXcQ",
    }
    response = requests.post(f"{BASE_URL}/materials/", data=data, headers=ADMIN_HEADERS)
    print_response(response, "Create YouTube Material")
    return response

def check_create_image_material(section_id):
    """Test POST /api/materials/ endpoint with an image upload"""
    # 1x1 transparent GIF
    gif = (b"GIF89a\x01\x00\x01\x00\x80\x00\x00\x00\x00\x00\xff\xff\xff!\xf9\x04\x01\x00\x00\x00\x00"
           b",\x00\x00\x00\x00\x01\x00\x01\x00\x00\x02\x02D\x01\x00;")
    data = {"section_id": section_id, "title": "Smoke test image", "file_type": "image"}
    files = {"image": ("pixel.gif", gif, "image/gif")}
    response = requests.post(f"{BASE_URL}/materials/", data=data, files=files, headers=ADMIN_HEADERS)
    print_response(response, "Create Image Material")
    return response

def check_list_materials(section_id):
    """Test GET /api/materials/?section=<id> endpoint"""
    response = requests.get(f"{BASE_URL}/materials/", params={"section": section_id})
    print_response(response, f"List Materials (section {section_id})")
    return response

def check_delete_section(section_id):
    """Test DELETE /api/sections/<id>/ endpoint (cascades to materials)"""
    response = requests.delete(f"{BASE_URL}/sections/{section_id}/", headers=ADMIN_HEADERS)
    print_response(response, f"Delete Section (ID: {section_id})")
    return response

def main():
    print("Starting API smoke run...")

    check_list_sections()

    section_response = check_create_section()
    if section_response.status_code == 201:
        section_id = section_response.json().get("id")

        check_create_youtube_material(section_id)
        check_create_image_material(section_id)
        check_list_materials(section_id)

        # cascade: both materials and the uploaded image go away
        check_delete_section(section_id)
        check_list_materials(section_id)
    else:
        print("Section creation failed, skipping remaining tests")

if __name__ == "__main__":
    main()
